# run.py
"""
run.py 是标准 Flask 服务启动脚本（给开发者 / 运维 / CLI 用）
仅用于本地 / 内网启动，数据库地址读取 DATABASE_URL（.env），缺省为根目录下的 community_portal.db
"""
import os

from community_portal.app_factory import create_app


def main():
    # 1️创建 Flask app（内部完成建表与超级管理员初始化）
    app = create_app(os.getenv("APP_CONFIG", "development"))

    print("DB URI:", app.config["DATABASE_URL"])
    print(app.url_map)

    # 2️启动参数
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))

    # 3️启动服务
    app.run(host=host, port=port, debug=app.config.get("DEBUG", False), use_reloader=False)


if __name__ == "__main__":
    main()
