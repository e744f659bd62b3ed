"""Custom exception hierarchy for the suggestion engine."""


class SuggestionEngineError(Exception):
    """Base exception for all suggestion engine errors."""


class InvalidNoteError(SuggestionEngineError):
    """Malformed note input supplied by the caller."""


class ConfigurationError(SuggestionEngineError):
    """Error in generator configuration."""


class ClassificationError(SuggestionEngineError):
    """Error while classifying a section."""


class SynthesisError(SuggestionEngineError):
    """Error while synthesizing candidates for a section."""


class ValidationStageError(SuggestionEngineError):
    """Unexpected error while running quality validators on a candidate."""


class LedgerInvariantError(SuggestionEngineError):
    """Debug ledger reached an inconsistent state."""
