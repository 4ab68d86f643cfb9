"""
演示数据：三栋楼的住户与 20 个议题
3号楼故意没有管家，用于演示“无管家待审核”列表
"""

SUPER_ADMIN_ID = "sys-admin-001"
SUPER_ADMIN_PHONE = "18688835658"
SUPER_ADMIN_PASSWORD = "895600"

SUPER_ADMIN = {
    "id": SUPER_ADMIN_ID,
    "name": "系统管理员",
    "role": "SUPER_ADMIN",
    "building": "物业中心",
    "unit": "Admin",
    "status": "VERIFIED",
    "phone_number": SUPER_ADMIN_PHONE,
    "password": SUPER_ADMIN_PASSWORD,
}

DEMO_PASSWORD = "password"

DEMO_USERS = [
    # --- 1号楼 ---
    {"id": "u-b1-admin", "name": "李明（1号楼管家）", "role": "BUILDING_ADMIN", "building": "1号楼",
     "unit": "101", "managed_building": "1号楼", "status": "VERIFIED", "phone_number": "13900000001"},
    {"id": "u-b1-owner1", "name": "张伟", "role": "OWNER", "building": "1号楼",
     "unit": "305", "status": "PENDING", "phone_number": "13900000002"},
    {"id": "u-b1-owner2", "name": "王芳", "role": "OWNER", "building": "1号楼",
     "unit": "602", "status": "PENDING", "phone_number": "13900000003"},
    # --- 2号楼 ---
    {"id": "u-b2-admin", "name": "刘强（2号楼管家）", "role": "BUILDING_ADMIN", "building": "2号楼",
     "unit": "202", "managed_building": "2号楼", "status": "VERIFIED", "phone_number": "13900000004"},
    {"id": "u-b2-owner1", "name": "陈静", "role": "OWNER", "building": "2号楼",
     "unit": "505", "status": "PENDING", "phone_number": "13900000005"},
    # --- 3号楼（无管家）---
    {"id": "u-b3-owner1", "name": "赵强（无管家）", "role": "OWNER", "building": "3号楼",
     "unit": "808", "status": "PENDING", "phone_number": "13900000006"},
    {"id": "u-b3-owner2", "name": "孙丽", "role": "OWNER", "building": "3号楼",
     "unit": "909", "status": "PENDING", "phone_number": "13900000007"},
]

DEMO_OPTIONS = ["同意", "反对", "弃权"]

DEMO_TOPICS = [
    ("2024年度物业服务费用调整方案", "鉴于人工及物料成本上涨，拟对现有物业费标准进行微调，调整幅度为0.2元/平米。"),
    ("地下车库增加新能源汽车充电桩", "计划在B2层F区增设20个国家电网标准快充桩，解决业主充电难问题。"),
    ("小区门禁系统升级人脸识别", "现有刷卡门禁反应迟钝，建议全面升级为AI人脸识别系统，提升安全性与便捷性。"),
    ("增设垃圾分类定时投放点", "响应政府号召，拟在3号楼北侧增设一处智能垃圾分类投放站。"),
    ("电梯广告收益公示及使用方案", "关于本年度电梯内框架广告及视频广告收益的公示及用于年底给业主发米油的提案。"),
    ("地下车库照明节能改造工程", "将车库现有日光灯管全部更换为雷达感应LED灯，预计年节电40%。"),
    ("儿童游乐区设施翻新计划", "中心花园儿童滑梯老化严重，存在安全隐患，申请维修基金进行整体更换。"),
    ("小区绿化补种及景观提升", "针对大门口及主干道两侧枯死植被进行补种，并增加时令花卉。"),
    ("关于严禁电动自行车上楼入户的公约", "为消除火灾隐患，拟在每栋楼大厅安装阻车系统，强制禁止电瓶车进入电梯。"),
    ("增设丰巢智能快递柜", "现有快递柜已饱和，拟在西门入口处新增一组快递柜。"),
    ("调整路灯及景观灯开启时间", "夏季建议延后开启路灯时间至19:30，以节约公共用电。"),
    ("文明养宠及宠物粪便清理规定", "制定详细的养犬管理公约，并增设宠物便便箱。"),
    ("春节小区氛围装饰预算审批", "申请2万元预算用于购买灯笼、中国结等装饰品，营造节日氛围。"),
    ("篮球场开放时间调整", "为避免扰民，建议将篮球场晚间关闭时间从22:00调整为21:00。"),
    ("楼道杂物清理专项行动", "授权物业对长期堆放在消防通道的私人物品进行强制清理。"),
    ("二次供水水箱清洗时间确认", "拟定于下周二对全小区生活水箱进行清洗消毒，期间将停水8小时。"),
    ("增加夜间安保巡逻频次", "建议在凌晨2:00-5:00期间，将巡逻频次由每2小时一次增加至每小时一次。"),
    ("社区活动中心用途征集", "6号楼架空层闲置空间拟改建为老年棋牌室或青年读书角。"),
    ("外墙渗水维修基金使用公示", "针对A栋西侧外墙严重渗水问题，启动紧急维修基金程序。"),
    ("新一届业主委员会换届选举筹备", "现届业委会任期将满，成立换届筹备组并推选业主代表。"),
]
