"""Board exception types."""


class BoardError(Exception):
    """Base class for board errors."""


class InvalidCardError(BoardError, ValueError):
    """Raised when a card payload cannot be read into a Card."""

    def __init__(self, card_id: str | None, reason: str):
        self.card_id = card_id
        self.reason = reason
        label = card_id if card_id else "<unknown>"
        super().__init__(f"Invalid card {label}: {reason}")


class InvalidFieldError(BoardError, ValueError):
    """Raised when a mutation supplies a field or value the card cannot hold."""

    def __init__(self, field_name: str, value, reason: str | None = None):
        self.field_name = field_name
        self.value = value
        detail = reason or f"invalid value {value!r}"
        super().__init__(f"Card field '{field_name}': {detail}")


class SnapshotImportError(BoardError):
    """Raised when an imported snapshot cannot be read."""


class FrontmatterError(BoardError):
    """Raised when a change proposal has missing or invalid frontmatter."""

    def __init__(self, change_id: str, problems: list[str]):
        self.change_id = change_id
        self.problems = problems
        super().__init__(
            f"[{change_id}] frontmatter validation failed: {', '.join(problems)}"
        )


class GenerationError(BoardError):
    """Raised when one or more change proposals fail dataset generation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            f"Errors processing {len(errors)} specs:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )
