"""
Runs the algorithm checks.

For each collected `emu-alg` the runner slices its source, has the algorithm
parser build the step tree, parses every step expression once into the
`ParsedSteps` side table, then runs the per-step style rules and the scope
checker over the shared results.
"""

import logging
from collections.abc import Sequence

from speclint.algorithms.expressions import (
    FragmentSeqParser,
    ParsedSteps,
    StepExpressionParser,
)
from speclint.algorithms.scope import check_scope
from speclint.algorithms.steps import (
    AlgorithmParser,
    OrderedList,
    ParseFailure,
    StepReporter,
    iter_steps,
)
from speclint.algorithms.style import check_step, check_step_numbering
from speclint.core.diagnostics import DiagnosticCollector, NodeLocation
from speclint.core.locations import offset_to_line_column
from speclint.document.collector import AlgorithmBlock
from speclint.document.nodes import DocumentLocator, Element
from speclint.models import LintConfig

logger = logging.getLogger(__name__)


class AlgorithmRunner:
    """
    Checks every collected algorithm.

    Params:
        locator: Document location service
        diagnostics: Collector receiving every violation
        algorithm_parser: Builds step trees from algorithm source
        expression_parser: Parses step fragments, defaults to `FragmentSeqParser`
        config: Lint settings
    """

    def __init__(
        self,
        locator: DocumentLocator,
        diagnostics: DiagnosticCollector,
        algorithm_parser: AlgorithmParser,
        expression_parser: StepExpressionParser | None = None,
        config: LintConfig | None = None,
    ):
        self.locator = locator
        self.diagnostics = diagnostics
        self.algorithm_parser = algorithm_parser
        self.expression_parser = expression_parser or FragmentSeqParser()
        self.config = config or LintConfig()

    def run(self, algorithms: Sequence[AlgorithmBlock]) -> None:
        for block in algorithms:
            self.run_one(block)

    def _reporter(self, element: Element, source: str) -> StepReporter:
        def report(rule_id: str, message: str, offset: int) -> None:
            line, column = offset_to_line_column(source, offset)
            self.diagnostics.add(rule_id, message, NodeLocation(element, line, column))

        return report

    def run_one(self, block: AlgorithmBlock) -> ParsedSteps | None:
        """
        Check one algorithm.

        Params:
            block: The collected algorithm

        Returns:
            The parsed steps, or None when the algorithm could not be parsed
        """
        element = block.element
        location = self.locator.locate(element)
        source = location.inner_text if location is not None else None
        if source is None:
            self.diagnostics.add(
                "missing-close-tag",
                "could not find closing tag for emu-alg",
                NodeLocation(element),
            )
            return None

        report = self._reporter(element, source)
        tree = self.algorithm_parser.parse_algorithm(source)
        if isinstance(tree, ParseFailure):
            report("expression-parsing", f"could not parse algorithm: {tree.message}", tree.offset)
            return None

        parsed: ParsedSteps = {}
        parse_failed = False
        for step, _ in iter_steps(tree):
            seq = self.expression_parser.parse_step(step, source)
            if isinstance(seq, ParseFailure):
                report("expression-parsing", seq.message, seq.offset)
                parse_failed = True
            else:
                parsed[step] = seq

        if not element.has_attribute("example"):
            check_step_numbering(tree, report)
            for step, parent in iter_steps(tree):
                if isinstance(parent, OrderedList):
                    check_step(step, parent, source, parsed, self.config, report)

        if element.has_attribute("replaces-step"):
            logger.debug("skipping scope analysis of step-replacement algorithm")
        elif block.in_excluded_annex:
            logger.debug("skipping scope analysis of algorithm in excluded annex")
        elif parse_failed:
            logger.info("skipping scope analysis of algorithm with unparsable steps")
        else:
            check_scope(element, tree, parsed, report, self.config.preseeded_variables)
        return parsed
