"""skythread - post thread assembly, load state and moderation helpers"""

from .errors import (
    SkythreadError,
    ResolutionError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from .at_uri import AtUri
from .models import (
    AuthorRef,
    ViewerState,
    VoteResult,
    ReplyingTo,
    ThreadPost,
    NotFoundPost,
    ThreadTree,
    LabelerView,
)
from .keys import KeyAllocator
from .thread_sorter import sort_thread, compare_replies
from .thread_assembler import ThreadAssembler
from .post_actions import PostActions
from .thread_view import PostThreadView, ThreadLoadState
from .moderation import (
    ModerationDecision,
    ModerationDecisionBundle,
    PostModerationDecisions,
    get_profile_moderation_causes,
    get_moderation_cause_key,
)
from .label_groups import (
    LabelDefinition,
    LabelGroupDefinition,
    LabelGroupRegistry,
    LABEL_GROUPS,
    get_label_groups_from_labels,
    get_configurable_label_groups,
)
from .xrpc_client import XrpcClient
from .config import SkythreadConfig, load_config
from .thread_view_formatter import ThreadViewFormatter
from .cli import cli

__all__ = [
    "SkythreadError",
    "ResolutionError",
    "NotFoundError",
    "TransportError",
    "ValidationError",
    "AtUri",
    "AuthorRef",
    "ViewerState",
    "VoteResult",
    "ReplyingTo",
    "ThreadPost",
    "NotFoundPost",
    "ThreadTree",
    "LabelerView",
    "KeyAllocator",
    "sort_thread",
    "compare_replies",
    "ThreadAssembler",
    "PostActions",
    "PostThreadView",
    "ThreadLoadState",
    "ModerationDecision",
    "ModerationDecisionBundle",
    "PostModerationDecisions",
    "get_profile_moderation_causes",
    "get_moderation_cause_key",
    "LabelDefinition",
    "LabelGroupDefinition",
    "LabelGroupRegistry",
    "LABEL_GROUPS",
    "get_label_groups_from_labels",
    "get_configurable_label_groups",
    "XrpcClient",
    "SkythreadConfig",
    "load_config",
    "ThreadViewFormatter",
    "cli",
]
