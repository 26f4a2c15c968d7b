import uuid


def make_request_id():
    return uuid.uuid4().hex


def join_url(base_url: str, path: str) -> str:
    return base_url.rstrip("/") + "/" + path.lstrip("/")
