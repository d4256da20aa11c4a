import time
import uuid

def gen_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def gen_blob_name() -> str:
    # millisecond timestamp keeps names sortable, the uuid keeps them unique
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex}"
