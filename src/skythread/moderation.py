"""Moderation causes and decision helpers

Moderation decisions are computed elsewhere from labels, mutes and blocks;
this module models the resulting causes and answers the questions the view
layer asks of them: what to blur or alert on for a profile, whether media
or a quoted post is blurred, and how to key and title a cause.
"""

import re
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .label_groups import LabelDefinition

# Bidi overrides and zero-width characters that can spoof a display name
_UNSAFE_DISPLAY_CHARS = re.compile(r"[\u200b-\u200f\u202a-\u202e\u2066-\u2069\ufeff]")
INVALID_HANDLE = "handle.invalid"


class UserSource(BaseModel):
    type: Literal["user"] = "user"


class ListSource(BaseModel):
    type: Literal["list"] = "list"
    uri: str
    name: Optional[str] = None


class LabelerSource(BaseModel):
    type: Literal["labeler"] = "labeler"
    did: str


CauseSource = Annotated[
    Union[UserSource, ListSource, LabelerSource], Field(discriminator="type")
]


class Label(BaseModel):
    """A label applied to a subject by a labeler"""

    val: str
    src: str
    uri: str
    cid: Optional[str] = None
    neg: bool = False
    cts: Optional[str] = None


class LabelCause(BaseModel):
    type: Literal["label"] = "label"
    source: CauseSource
    label: Label
    label_def: LabelDefinition = Field(alias="labelDef")
    priority: int = 0

    class Config:
        populate_by_name = True


class MutedCause(BaseModel):
    type: Literal["muted"] = "muted"
    source: CauseSource = Field(default_factory=UserSource)
    priority: int = 6


class MutedByListCause(BaseModel):
    type: Literal["muted-by-list"] = "muted-by-list"
    source: CauseSource
    priority: int = 6


class BlockingCause(BaseModel):
    type: Literal["blocking"] = "blocking"
    source: CauseSource = Field(default_factory=UserSource)
    priority: int = 3


class BlockedByCause(BaseModel):
    type: Literal["blocked-by"] = "blocked-by"
    source: CauseSource = Field(default_factory=UserSource)
    priority: int = 4


class NoUnauthenticatedCause(BaseModel):
    type: Literal["no-unauthenticated"] = "no-unauthenticated"
    source: CauseSource = Field(default_factory=UserSource)
    priority: int = 1


ModerationCause = Annotated[
    Union[
        LabelCause,
        MutedCause,
        MutedByListCause,
        BlockingCause,
        BlockedByCause,
        NoUnauthenticatedCause,
    ],
    Field(discriminator="type"),
]

AnyCause = Union[
    LabelCause,
    MutedCause,
    MutedByListCause,
    BlockingCause,
    BlockedByCause,
    NoUnauthenticatedCause,
]


class ModerationDecision(BaseModel):
    """Decision for one scope: a primary cause plus any additional ones"""

    cause: Optional[ModerationCause] = None
    additional_causes: List[ModerationCause] = Field(default_factory=list, alias="additionalCauses")
    filter: bool = False
    blur: bool = False
    blur_media: bool = Field(default=False, alias="blurMedia")
    alert: bool = False
    no_override: bool = Field(default=False, alias="noOverride")

    class Config:
        populate_by_name = True


class ModerationDecisionBundle(BaseModel):
    """Profile moderation: decisions for the profile and account scopes"""

    profile: ModerationDecision = Field(default_factory=ModerationDecision)
    account: ModerationDecision = Field(default_factory=ModerationDecision)


class PostModerationDecisions(BaseModel):
    """Post moderation: decisions for the post and anything it quotes"""

    post: ModerationDecision = Field(default_factory=ModerationDecision)
    account: ModerationDecision = Field(default_factory=ModerationDecision)
    profile: ModerationDecision = Field(default_factory=ModerationDecision)
    quote: Optional[ModerationDecision] = None
    quoted_account: Optional[ModerationDecision] = Field(default=None, alias="quotedAccount")

    class Config:
        populate_by_name = True


def get_profile_moderation_causes(moderation: ModerationDecisionBundle) -> List[AnyCause]:
    """Gather everything on profile and account that blurs or alerts

    Order is profile cause, profile additional causes, account cause, account
    additional causes. Missing primary causes are skipped. Label causes are
    kept only when their definition warns with ``blur`` or ``alert``; every
    other cause type passes through.
    """
    causes = [
        moderation.profile.cause,
        *moderation.profile.additional_causes,
        moderation.account.cause,
        *moderation.account.additional_causes,
    ]
    result = []
    for cause in causes:
        if cause is None:
            continue
        if cause.type == "label" and cause.label_def.on_warn not in ("blur", "alert"):
            continue
        result.append(cause)
    return result


def is_post_media_blurred(decisions: PostModerationDecisions) -> bool:
    return decisions.post.blur_media


def is_quote_blurred(decisions: PostModerationDecisions) -> bool:
    quote = decisions.quote
    quoted_account = decisions.quoted_account
    if quote is not None and (quote.blur or quote.blur_media or quote.filter):
        return True
    if quoted_account is not None and (quoted_account.blur or quoted_account.filter):
        return True
    return False


def is_cause_a_label_on_uri(cause: Optional[AnyCause], uri: str) -> bool:
    if cause is None or cause.type != "label":
        return False
    return cause.label.uri == uri


def _source_key(cause: AnyCause) -> str:
    source = cause.source
    if source.type == "labeler":
        return source.did
    if source.type == "list":
        return source.uri
    return "user"


def get_moderation_cause_key(cause: AnyCause) -> str:
    """Stable key for a cause, unique per type, label value and source"""
    source = _source_key(cause)
    if cause.type == "label":
        return f"label:{cause.label.val}:{source}"
    return f"{cause.type}:{source}"


def sanitize_display_name(display_name: str) -> str:
    return _UNSAFE_DISPLAY_CHARS.sub("", display_name).strip()


def sanitize_handle(handle: str, prefix: str = "") -> str:
    if handle == INVALID_HANDLE:
        return "⚠Invalid Handle"
    return f"{prefix}{handle}"


def get_moderation_service_title(handle: str, display_name: Optional[str] = None) -> str:
    """Title for a labeler: its display name, falling back to @handle"""
    if display_name:
        sanitized = sanitize_display_name(display_name)
        if sanitized:
            return sanitized
    return sanitize_handle(handle, "@")
