"""Documentation publishing to a gh-pages style branch.

Usage:
    from cargoci.docs import PublishRequest, publish

    result = publish(PublishRequest(origin=url, doc_dir=Path("target/doc")))
"""

from cargoci.docs.badge import FAILURE_COLOR, NO_BUILDS, SUCCESS_COLOR, Badge
from cargoci.docs.copy import copy_entries, tree_size
from cargoci.docs.publisher import (
    DocPublisher,
    PublishRequest,
    PublishResult,
    clear_directory,
    publish,
    resolve_publish_dir,
)

__all__ = [
    "Badge",
    "FAILURE_COLOR",
    "NO_BUILDS",
    "SUCCESS_COLOR",
    "copy_entries",
    "tree_size",
    "DocPublisher",
    "PublishRequest",
    "PublishResult",
    "clear_directory",
    "publish",
    "resolve_publish_dir",
]
