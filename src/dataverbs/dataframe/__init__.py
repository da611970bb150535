"""Dataframe library built on top of dataverbs.

A dataframe library is a tool designed to handle and manipulate structured data,
typically in the form of tables (i.e., rows and columns).
It allows users to load data from various sources (like CSV files),
explore it, apply transformations, and analyze it.

Dataframes provide a convenient way to chain the verbs of data
manipulation: filtering rows, computing new columns, grouping
and summarising.

This module shows how to implement a dataframe library,
using the dataverbs compute engine as its foundation.
Each method of the dataframe adds an operator to a pipeline,
which is executed in a single pass when the data is collected.

>>> from dataverbs.compute import col, Mean
>>> df = Dataframe({"c": ["A", "B", "A"], "v": [10, 20, 30]})
>>> df.group_by("c").summarise(mean=Mean("v")).to_pydict()
{'c': ['A', 'B'], 'mean': [20.0, 20.0]}
"""

from ..compute import col, lit
from .dataframe import Dataframe

__all__ = ("Dataframe", "col", "lit")
