"""Load-time check that every policy a rule table names exists"""

import asyncio
from typing import Awaitable, Callable

from circulation_gateway.domain.exceptions import PolicyNotFoundError
from circulation_gateway.domain.policy_kinds import PolicyKind
from circulation_gateway.domain.rules.matcher import RuleMatcher

PolicyExists = Callable[[PolicyKind, str], Awaitable[bool]]


async def validate_policy_references(matcher: RuleMatcher, policy_exists: PolicyExists) -> None:
    """
    Look up every referenced policy id and fail on the first missing one.

    Lookups run concurrently; the error reported is the first missing
    reference in line order, whatever order the lookups complete in.

    Raises:
        PolicyNotFoundError: naming the kind and id of the missing policy
    """
    references = []
    for kind, policy_id, _line in matcher.referenced_policy_ids():
        if (kind, policy_id) not in references:
            references.append((kind, policy_id))

    found = await asyncio.gather(*(policy_exists(kind, policy_id) for kind, policy_id in references))

    for (kind, policy_id), exists in zip(references, found):
        if not exists:
            raise PolicyNotFoundError(kind, policy_id)
