"""
Algorithm step model and checks.

This package provides the step tree and parsed-expression types, the step
classifier with its style rules, the scope checker and the runner tying them
together.
"""

from speclint.algorithms.classifier import StepCategory, check_line_style, classify
from speclint.algorithms.expressions import (
    EnumItem,
    FigureItem,
    FragmentSeqParser,
    NonterminalItem,
    ParenItem,
    ParsedSteps,
    PassThroughItem,
    RecordSpecItem,
    Seq,
    StepExpressionParser,
    TextItem,
    VariableItem,
)
from speclint.algorithms.runner import AlgorithmRunner
from speclint.algorithms.scope import Scope, ScopeChecker, VarKind, check_scope
from speclint.algorithms.steps import (
    AlgorithmParser,
    Comment,
    ListItem,
    OpaqueTag,
    OrderedList,
    ParseFailure,
    Pipe,
    Star,
    StepAttribute,
    Tag,
    Text,
    Tilde,
    UnorderedList,
    Variable,
)

__all__ = [
    "StepCategory",
    "check_line_style",
    "classify",
    "EnumItem",
    "FigureItem",
    "FragmentSeqParser",
    "NonterminalItem",
    "ParenItem",
    "ParsedSteps",
    "PassThroughItem",
    "RecordSpecItem",
    "Seq",
    "StepExpressionParser",
    "TextItem",
    "VariableItem",
    "AlgorithmRunner",
    "Scope",
    "ScopeChecker",
    "VarKind",
    "check_scope",
    "AlgorithmParser",
    "Comment",
    "ListItem",
    "OpaqueTag",
    "OrderedList",
    "ParseFailure",
    "Pipe",
    "Star",
    "StepAttribute",
    "Tag",
    "Text",
    "Tilde",
    "UnorderedList",
    "Variable",
]
