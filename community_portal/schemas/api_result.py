# community_portal/schemas/api_result.py
from typing import Any, Optional
from pydantic import BaseModel
from community_portal.errors import ErrorType

class ApiResult(BaseModel):
    '''
    接口返回值的结构化表达，业务错误也以结果值返回，而不是抛给调用方

    参数	说明
    ok: bool  - 命令是否完成预期操作
    error_type: Optional[ErrorType] - 错误类型的结构化记录
    error_message: Optional[str] - 面向开发者的错误说明，界面文案由前端根据 error_type 决定
    data: Optional[Any] - 命令或查询的结构化结果
    '''
    ok: bool  # 是否成功完成

    error_type: Optional[ErrorType] = None
    error_message: Optional[str] = None

    data: Optional[Any] = None
