"""安装步骤"""

from .install_step import InstallStep
from .resolve_step import ResolveStep
from .fetch_step import FetchStep
from .materialize_step import MaterializeStep
from .link_step import LinkStep
from .record_step import RecordStep

__all__ = [
    "InstallStep",
    "ResolveStep",
    "FetchStep",
    "MaterializeStep",
    "LinkStep",
    "RecordStep",
]
