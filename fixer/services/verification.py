from collections.abc import Callable
from typing import Any

from fixer.models.professional import Candidate, VerificationState

Accessor = Callable[[dict], Any]


def _path(*keys: str) -> Accessor:
    def read(record: dict) -> Any:
        value: Any = record
        for key in keys:
            if not isinstance(value, dict):
                return None
            value = value.get(key)
        return value

    return read


_EMAIL_VERIFIED = _path("emailVerification", "isVerified")
_FACE_STATUS = _path("faceVerification", "status")
_OVERRIDES: tuple[Accessor, ...] = (_path("isVerified"), _path("verified"))


class VerificationResolver:
    """
    Derives a professional's verification badge state from a backend record.

    Verification fields may live on the professional record or on an embedded account
    sub-record. Sources are consulted in order (embedded account first, then the record
    itself) and the first source that carries a value wins.

    An explicit top-level `isVerified`/`verified` flag set to `True` on any source overrides
    the granular checks and marks the professional fully verified.
    """

    NESTED_KEYS: tuple[str, ...] = ("user", "account", "owner")

    def sources(self, record: dict) -> list[dict]:
        ordered = [record[key] for key in self.NESTED_KEYS if isinstance(record.get(key), dict)][:1]
        ordered.append(record)
        return ordered

    @staticmethod
    def _first_value(sources: list[dict], accessor: Accessor) -> Any:
        for source in sources:
            value = accessor(source)
            if value not in (None, ""):
                return value
        return None

    def resolve(self, candidate: Candidate | dict | None) -> VerificationState:
        record = candidate.raw if isinstance(candidate, Candidate) else candidate
        if not isinstance(record, dict):
            return VerificationState()

        sources = self.sources(record)
        if any(read(source) is True for source in sources for read in _OVERRIDES):
            return VerificationState(email_verified=True, face_verified=True, fully_verified=True)

        email_verified = bool(self._first_value(sources, _EMAIL_VERIFIED))
        face_status = self._first_value(sources, _FACE_STATUS)
        face_verified = str(face_status).lower() == "verified" if face_status is not None else False

        return VerificationState(
            email_verified=email_verified,
            face_verified=face_verified,
            fully_verified=email_verified and face_verified,
        )

    def is_fully_verified(self, candidate: Candidate | dict | None) -> bool:
        return self.resolve(candidate).fully_verified


verification_resolver = VerificationResolver()
