"""dataverbs

A small in-memory engine for the everyday verbs of data manipulation:
filtering rows, deriving new columns, grouping and summarising.

dataverbs is meant for learning and teaching how those verbs work
under the hood, each component lives in its own module and is
documented in literate programming style.

The primary components are:

* The Compute Engine, which holds the data in a :class:`dataverbs.compute.ColumnStore`
  and implements the verbs as operators that can be composed in pipelines.
* The Dataframe API, which provides a chainable high level API over the compute engine.

For the user guide and code documentation of each component, refer to the
component itself.
"""

import logging

from . import compute

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ("compute",)
