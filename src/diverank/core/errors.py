"""Custom exceptions for configuration and matchmaking errors."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Base exception for configuration errors with optional suggestions."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Configuration Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class CatalogError(ConfigurationError):
    """Error when a dive-site catalog file is invalid."""

    def __init__(self, catalog_path: str, reason: str) -> None:
        super().__init__(
            f"Invalid dive-site catalog {catalog_path}: {reason}",
            "Give every site a unique integer 'id' and a 'name'.",
        )


class DiveRankError(Exception):
    """Base class for expected matchmaking and voting outcomes.

    These are reported to the end user as informational states or rejected
    requests, never as server faults.
    """


class InsufficientCatalogError(DiveRankError):
    """Fewer than two dive sites are available to build a matchup."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"Not enough dive sites for a matchup (have {count}, need 2)")


class AllMatchupsCompletedError(DiveRankError):
    """The actor has compared every possible pair in the catalog."""

    def __init__(self, actor_id: str | None, total_pairs: int) -> None:
        self.actor_id = actor_id
        self.total_pairs = total_pairs
        super().__init__(f"All {total_pairs} matchups completed")


class DuplicateComparisonError(DiveRankError):
    """The actor already voted on this unordered pair."""

    def __init__(self, actor_id: str | None, pair_key: str) -> None:
        self.actor_id = actor_id
        self.pair_key = pair_key
        super().__init__(f"Already voted on matchup {pair_key}")


class UnknownItemError(DiveRankError):
    """One or more dive site ids do not exist."""

    def __init__(self, missing_ids: list[int]) -> None:
        self.missing_ids = missing_ids
        ids = ", ".join(str(i) for i in missing_ids)
        super().__init__(f"Dive site not found: {ids}")


class SameItemComparisonError(DiveRankError):
    """Winner and loser are the same dive site."""

    def __init__(self, site_id: int) -> None:
        self.site_id = site_id
        super().__init__(f"A dive site cannot be compared with itself (id {site_id})")


class StaleRatingError(Exception):
    """A concurrent comparison changed a site between read and write.

    Transient: the recorder retries the whole unit of work.
    """
