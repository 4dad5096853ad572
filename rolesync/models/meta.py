"""Object metadata shared by source and derived objects."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel


class ObjectMeta(BaseModel):
    """Identity and bookkeeping for a stored object.

    uid, resource_version, creation_timestamp and self_link are owned by the
    store that holds the object.
    """

    name: str = ""
    namespace: str = ""
    uid: str = ""
    resource_version: str = ""
    creation_timestamp: Optional[datetime] = None
    self_link: str = ""
    labels: Dict[str, str] = {}
    annotations: Dict[str, str] = {}
