"""
Lint driver.

`lint()` runs every checker over one document, in a fixed order, and returns
the resolved diagnostics sorted by line and column.
"""

import logging

from speclint.algorithms.expressions import StepExpressionParser
from speclint.algorithms.runner import AlgorithmRunner
from speclint.algorithms.steps import AlgorithmParser
from speclint.core.diagnostics import DiagnosticCollector, LintMessage, Sink
from speclint.document.collector import DocumentCollector
from speclint.document.nodes import Document
from speclint.grammar.consistency import check_grammar
from speclint.grammar.model import GrammarCompiler
from speclint.models import LintConfig
from speclint.prose.headers import check_headers
from speclint.prose.spelling import check_sources
from speclint.prose.tags import check_tags

logger = logging.getLogger(__name__)


def lint(
    document: Document,
    *,
    algorithm_parser: AlgorithmParser | None = None,
    expression_parser: StepExpressionParser | None = None,
    grammar_compiler: GrammarCompiler | None = None,
    config: LintConfig | None = None,
    sink: Sink | None = None,
) -> list[LintMessage]:
    """
    Lint a document.

    Spelling and tag checks always run. Grammar and algorithm checks run when
    their parser is supplied and the document collection succeeded.

    Params:
        document: Built document tree with its sources and locations
        algorithm_parser: Parser for `emu-alg` contents
        expression_parser: Parser for step expressions; a default fragment
            parser is used when omitted
        grammar_compiler: Compiler for `emu-grammar` contents
        config: Lint settings
        sink: Optional callable receiving each message in order

    Returns:
        Resolved messages, sorted by (line, column)
    """
    config = config or LintConfig()
    diagnostics = DiagnosticCollector(document, config.disabled_rules)

    check_sources(document.sources, diagnostics)
    check_tags(document.root, document, diagnostics, config)

    groups = DocumentCollector(document, diagnostics, config).collect(document.root)
    if groups.failed:
        logger.warning("document collection failed; skipping grammar and algorithm checks")
    else:
        logger.debug(
            "collected %d headers, %d canonical grammars, %d SDOs, "
            "%d early errors, %d algorithms",
            len(groups.headers),
            len(groups.canonical_grammar),
            len(groups.sdos),
            len(groups.early_errors),
            len(groups.algorithms),
        )

        if grammar_compiler is None:
            logger.info("no grammar compiler supplied; skipping grammar checks")
        else:
            check_grammar(
                document,
                grammar_compiler,
                diagnostics,
                groups.canonical_grammar,
                groups.associations,
            )

        if algorithm_parser is None:
            logger.info("no algorithm parser supplied; skipping algorithm checks")
        else:
            AlgorithmRunner(
                document, diagnostics, algorithm_parser, expression_parser, config
            ).run(groups.algorithms)

        check_headers(groups.headers, diagnostics, document)

    if sink is None:
        return diagnostics.messages()
    return diagnostics.flush(sink)
