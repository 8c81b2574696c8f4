"""Table handles and queries built on top of the reftable compute engine.

A table handle is the way users interact with their data:
they select rows, compute new columns, group and aggregate,
and update the data in place, all through the same
``table[where, select, by]`` access pattern.

This module implements the :class:`Table` handle and the
:class:`Query` evaluation, using the compute engine blocks
from :mod:`reftable.compute` as its foundation.
"""

from .query import Query, chain
from .table import Table, order

__all__ = ("Table", "Query", "chain", "order")
