"""Problem descriptor: a cost function over a manifold."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import PreconditionError
from .manifold import Manifold


@dataclass(frozen=True)
class Problem:
    """
    A cost function together with the manifold it is defined on.

    Args:
        manifold: Search space of the problem
        cost: Callable mapping a point of ``manifold`` to a real scalar tensor

    Example:
        >>> from geograd.manifolds import Euclidean
        >>> problem = Problem(Euclidean(3), lambda x: (x ** 2).sum())
    """

    manifold: Optional[Manifold] = None
    cost: Optional[Callable[[Any], Any]] = None

    def validate(self) -> "Problem":
        """Check that both the manifold and the cost are present.

        Raises:
            PreconditionError: If either field is missing or the cost is
                not callable.
        """
        if self.manifold is None or self.cost is None:
            raise PreconditionError("problem must contain a manifold and a cost")
        if not callable(self.cost):
            raise PreconditionError(f"problem cost must be callable, got {type(self.cost).__name__}")
        return self


def as_problem(obj: Any) -> Problem:
    """Build a :class:`Problem` from any supported descriptor.

    Accepts a ``Problem``, a mapping with a ``cost`` key and a ``manifold``
    (or ``M``) key, or any object exposing those attributes.
    """
    if isinstance(obj, Problem):
        return obj
    if isinstance(obj, Mapping):
        manifold = obj.get("manifold", obj.get("M"))
        return Problem(manifold=manifold, cost=obj.get("cost"))
    manifold = getattr(obj, "manifold", getattr(obj, "M", None))
    return Problem(manifold=manifold, cost=getattr(obj, "cost", None))
