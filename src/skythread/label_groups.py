"""Label definitions, label groups and the label policy source

Raw label strings (``"spam"``, ``"gore"``, ...) are classified into named
groups that are exposed to users as single settings. The built-in table can
be extended or replaced per group from configuration.
"""

from typing import Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, Field

OnWarnPolicy = Literal["ignore", "warn", "blur", "alert", "hide"]


class LabelDefinition(BaseModel):
    """One label and how a warning for it is presented"""

    id: str
    on_warn: OnWarnPolicy = Field(default="ignore", alias="onwarn")
    configurable: bool = True
    flags: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class LabelGroupDefinition(BaseModel):
    """A named bundle of labels exposed as one setting"""

    id: str
    configurable: bool
    labels: List[LabelDefinition] = Field(default_factory=list)

    @property
    def label_ids(self) -> set:
        return {label.id for label in self.labels}

    def contains(self, label_id: str) -> bool:
        return any(label.id == label_id for label in self.labels)


class LabelPolicy(BaseModel):
    """Resolved policy for one label id"""

    on_warn: OnWarnPolicy = "ignore"
    groups: List[str] = Field(default_factory=list)


def _label(label_id: str, on_warn: str, configurable: bool = True, flags: Optional[List[str]] = None) -> LabelDefinition:
    return LabelDefinition(id=label_id, on_warn=on_warn, configurable=configurable, flags=flags or [])


LABELS: Dict[str, LabelDefinition] = {
    label.id: label
    for label in [
        # system
        _label("!hide", "blur", configurable=False, flags=["no-override"]),
        _label("!no-promote", "ignore", configurable=False),
        _label("!warn", "blur", configurable=False),
        _label("!no-unauthenticated", "blur", configurable=False, flags=["unauthed"]),
        # legal
        _label("dmca-violation", "blur", configurable=False, flags=["no-override"]),
        _label("doxxing", "blur", configurable=False, flags=["no-override"]),
        # sexual
        _label("porn", "blur", flags=["adult"]),
        _label("sexual", "blur", flags=["adult"]),
        _label("nudity", "blur"),
        # violence
        _label("nsfl", "blur", flags=["adult"]),
        _label("corpse", "blur", flags=["adult"]),
        _label("gore", "blur", flags=["adult"]),
        _label("torture", "blur", flags=["adult"]),
        _label("self-harm", "blur"),
        # intolerance
        _label("intolerant-race", "blur"),
        _label("intolerant-gender", "blur"),
        _label("intolerant-sexual-orientation", "blur"),
        _label("intolerant-religion", "blur"),
        _label("intolerant", "blur"),
        _label("icon-intolerant", "blur"),
        # rude
        _label("threat", "blur"),
        # curation
        _label("spoiler", "blur"),
        # spam
        _label("spam", "warn"),
        # misinfo
        _label("account-security", "alert"),
        _label("net-abuse", "alert"),
        _label("impersonation", "alert"),
        _label("scam", "alert"),
        _label("misleading", "alert"),
    ]
}


def _group(group_id: str, configurable: bool, label_ids: Iterable[str]) -> LabelGroupDefinition:
    return LabelGroupDefinition(
        id=group_id,
        configurable=configurable,
        labels=[LABELS[label_id] for label_id in label_ids],
    )


LABEL_GROUPS: Dict[str, LabelGroupDefinition] = {
    group.id: group
    for group in [
        _group("system", False, ["!hide", "!no-promote", "!warn", "!no-unauthenticated"]),
        _group("legal", False, ["dmca-violation", "doxxing"]),
        _group("sexual", True, ["porn", "sexual", "nudity"]),
        _group("violence", True, ["nsfl", "corpse", "gore", "torture", "self-harm"]),
        _group("intolerance", True, [
            "intolerant-race",
            "intolerant-gender",
            "intolerant-sexual-orientation",
            "intolerant-religion",
            "intolerant",
            "icon-intolerant",
        ]),
        _group("rude", True, ["threat"]),
        _group("curation", True, ["spoiler"]),
        _group("spam", True, ["spam"]),
        _group("misinfo", True, [
            "account-security",
            "net-abuse",
            "impersonation",
            "scam",
            "misleading",
        ]),
    ]
}


class LabelGroupRegistry:
    """Ordered set of label group definitions

    Iteration order is insertion order and is the order groups are reported
    in by every query.

    Example:
        >>> registry = LabelGroupRegistry()
        >>> [g.id for g in registry.groups_for_labels(["gore", "spam"])]
        ['violence', 'spam']
    """

    def __init__(self, groups: Optional[Iterable[LabelGroupDefinition]] = None):
        if groups is None:
            groups = LABEL_GROUPS.values()
        self._groups: Dict[str, LabelGroupDefinition] = {g.id: g for g in groups}

    def __iter__(self):
        return iter(self._groups.values())

    def __len__(self) -> int:
        return len(self._groups)

    def get(self, group_id: str) -> Optional[LabelGroupDefinition]:
        return self._groups.get(group_id)

    def groups_for_labels(self, labels: Iterable[str]) -> List[LabelGroupDefinition]:
        """Groups matched by each label, one entry per (label, group) match

        Duplicates are kept: two labels in the same group yield that group
        twice. Labels in no group contribute nothing.
        """
        groups = []
        for label in labels:
            for group in self._groups.values():
                if group.contains(label):
                    groups.append(group)
        return groups

    def configurable_groups(self) -> List[LabelGroupDefinition]:
        return [group for group in self._groups.values() if group.configurable]

    def policy_for(self, label_id: str) -> LabelPolicy:
        """Warn policy and group memberships for a label id

        The first definition found for the label (built-in table first, then
        group members in registry order) decides ``on_warn``. Unknown labels
        are ignored.
        """
        definition = LABELS.get(label_id)
        groups = []
        for group in self._groups.values():
            for label in group.labels:
                if label.id == label_id:
                    groups.append(group.id)
                    if definition is None:
                        definition = label
        if definition is None:
            return LabelPolicy()
        return LabelPolicy(on_warn=definition.on_warn, groups=groups)

    def with_overrides(self, overrides: Iterable[LabelGroupDefinition]) -> "LabelGroupRegistry":
        """New registry with groups replaced by id, or appended when new"""
        groups = dict(self._groups)
        for group in overrides:
            groups[group.id] = group
        return LabelGroupRegistry(groups.values())


DEFAULT_REGISTRY = LabelGroupRegistry()


def get_label_groups_from_labels(
    labels: Iterable[str], registry: Optional[LabelGroupRegistry] = None
) -> List[LabelGroupDefinition]:
    registry = registry if registry is not None else DEFAULT_REGISTRY
    return registry.groups_for_labels(labels)


def get_configurable_label_groups(
    registry: Optional[LabelGroupRegistry] = None,
) -> List[LabelGroupDefinition]:
    registry = registry if registry is not None else DEFAULT_REGISTRY
    return registry.configurable_groups()
