"""
Effective role-binding resolution.

A workspace inherits every binding anchored at any of its ancestors. The
effective list is a plain union ordered from the root down to the target:
a binding made further down never hides or narrows one made above it.
Nothing is cached; resolve again after every tree rebuild.
"""

import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .tree import TreeNode
from .types import EffectiveBinding, RoleBinding, SubjectType

logger = logging.getLogger(__name__)

BindingIndex = Mapping[str, Sequence[RoleBinding]]
BindingFetcher = Callable[[str], Union[Iterable[Any], Awaitable[Iterable[Any]]]]


def index_bindings(bindings: Iterable[Union[RoleBinding, Dict[str, Any]]]) -> Dict[str, List[RoleBinding]]:
    """Group bindings by the workspace they are anchored at, keeping order."""
    index: Dict[str, List[RoleBinding]] = defaultdict(list)
    for item in bindings:
        binding = item if isinstance(item, RoleBinding) else RoleBinding.model_validate(item)
        index[binding.workspace_id].append(binding)
    return dict(index)


def resolve_effective(target: TreeNode, index: BindingIndex) -> List[EffectiveBinding]:
    """
    Compute the bindings that apply to ``target``.

    Bindings are concatenated root first. Each is tagged ``is_inherited``
    unless it is anchored at the target. Repeats of the exact same binding
    at the same workspace collapse into one; the same role and subject
    bound at two different levels are both kept.
    """
    effective: List[EffectiveBinding] = []
    seen = set()

    for node in target.ancestors():
        for binding in index.get(node.id, ()):
            if binding.workspace_id != node.id:
                logger.warning(
                    f"Binding of role '{binding.role_id}' is anchored at "
                    f"'{binding.workspace_id}' but indexed under '{node.id}', skipping"
                )
                continue
            resolved = EffectiveBinding.from_binding(binding, target.id)
            if resolved in seen:
                continue
            seen.add(resolved)
            effective.append(resolved)

    return effective


async def resolve_effective_async(target: TreeNode, fetch_bindings: BindingFetcher) -> List[EffectiveBinding]:
    """
    Resolve ``target`` by asking the role-binding collaborator for each
    workspace on its ancestor chain, root first.
    """
    index: Dict[str, List[RoleBinding]] = {}
    for node in target.ancestors():
        response = fetch_bindings(node.id)
        if inspect.isawaitable(response):
            response = await response
        index[node.id] = index_bindings(response).get(node.id, [])
    return resolve_effective(target, index)


def split_effective(effective: Iterable[EffectiveBinding]) -> Tuple[List[EffectiveBinding], List[EffectiveBinding]]:
    """Split into (direct, inherited), preserving order within each."""
    direct: List[EffectiveBinding] = []
    inherited: List[EffectiveBinding] = []
    for binding in effective:
        (inherited if binding.is_inherited else direct).append(binding)
    return direct, inherited


@dataclass
class SubjectAccess:
    """Everything one user or group receives at a workspace."""
    subject_id: str
    subject_type: SubjectType
    role_ids: List[str] = field(default_factory=list)
    source_workspace_ids: List[str] = field(default_factory=list)
    inherited_from: Optional[str] = None
    has_direct: bool = False

    @property
    def role_count(self) -> int:
        return len(self.role_ids)


def summarize_by_subject(effective: Iterable[EffectiveBinding]) -> List[SubjectAccess]:
    """
    Collapse an effective list into one row per subject.

    ``inherited_from`` is the nearest ancestor a subject's bindings come
    from, and stays None when the subject is also bound directly.
    """
    rows: Dict[Tuple[SubjectType, str], SubjectAccess] = {}
    for binding in effective:
        key = (binding.subject_type, binding.subject_id)
        row = rows.get(key)
        if row is None:
            row = rows[key] = SubjectAccess(binding.subject_id, binding.subject_type)
        if binding.role_id not in row.role_ids:
            row.role_ids.append(binding.role_id)
        if binding.source_workspace_id not in row.source_workspace_ids:
            row.source_workspace_ids.append(binding.source_workspace_id)
        if binding.is_inherited:
            # Later entries are closer to the target
            row.inherited_from = binding.source_workspace_id
        else:
            row.has_direct = True

    for row in rows.values():
        if row.has_direct:
            row.inherited_from = None
    return list(rows.values())
