class InvalidArgument(ValueError):
    """識別子やキャンペーン定義が不正な場合に送出される"""


class StoreUnavailable(RuntimeError):
    """Sticky store への lookup / save が失敗した場合に送出される"""
