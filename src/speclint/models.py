"""
Configuration model for a lint run.

Defaults describe the document format as written by specification authors;
callers override individual fields for documents with other conventions.
"""

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_KNOWN_EMU_TAGS = frozenset(
    {
        "emu-meta",
        "emu-import",
        "emu-example",
        "emu-intro",
        "emu-clause",
        "emu-annex",
        "emu-biblio",
        "emu-xref",
        "emu-prodref",
        "emu-not-ref",
        "emu-note",
        "emu-eqn",
        "emu-table",
        "emu-figure",
        "emu-caption",
        "emu-grammar",
        "emu-alg",
        "emu-var",
        "emu-val",
        "emu-production",
        "emu-rhs",
        "emu-nt",
        "emu-t",
        "emu-gann",
        "emu-gprose",
        "emu-gmod",
        "emu-normative-optional",
    }
)


class LintConfig(BaseModel):
    """
    Settings shared by every checker in a lint run.

    Params:
        excluded_annex_id: id of the annex whose grammar and algorithms are
            excluded from grammar collection and scope checking
        early_errors_header: exact header text of Early Errors clauses
        step_label_prefix: required prefix of step `id` attributes
        known_step_attributes: attributes allowed on algorithm steps
        preseeded_variables: names visible in every algorithm scope
        known_emu_tags: recognized `emu-*` element names
        disabled_rules: rule ids whose diagnostics are dropped
    """

    model_config = ConfigDict(frozen=True)

    excluded_annex_id: str = "sec-additional-ecmascript-features-for-web-browsers"
    early_errors_header: str = "Static Semantics: Early Errors"
    step_label_prefix: str = "step-"
    known_step_attributes: frozenset[str] = frozenset({"id", "fence-effects", "declared"})
    preseeded_variables: tuple[str, ...] = ("captures", "input", "startIndex", "endIndex")
    known_emu_tags: frozenset[str] = DEFAULT_KNOWN_EMU_TAGS
    disabled_rules: frozenset[str] = frozenset()

    @field_validator("step_label_prefix")
    @classmethod
    def _prefix_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("step_label_prefix must not be empty")
        return value

    @field_validator("known_emu_tags")
    @classmethod
    def _emu_tags_lowercase(cls, value: frozenset[str]) -> frozenset[str]:
        return frozenset(tag.lower() for tag in value)
