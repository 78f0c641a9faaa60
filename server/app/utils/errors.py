"""业务异常 —— 由 main.py 中的统一处理器转为响应信封"""


class ServiceError(Exception):
    """业务异常基类"""

    def __init__(self, detail: str, status_code: int = 400):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class ValidationError(ServiceError):
    def __init__(self, detail: str):
        super().__init__(detail, 400)


class UnauthorizedError(ServiceError):
    def __init__(self, detail: str = "未授权"):
        super().__init__(detail, 401)


class NotFoundError(ServiceError):
    def __init__(self, detail: str):
        super().__init__(detail, 404)


class ConflictError(ServiceError):
    def __init__(self, detail: str):
        super().__init__(detail, 409)


class InsufficientStockError(ConflictError):
    """库存不足：请求数量超过当前库存，或扣减时库存已被并发订单占用"""

    def __init__(self, book_id: str, title: str | None = None):
        super().__init__(f"库存不足: {title or book_id}")
        self.book_id = book_id
