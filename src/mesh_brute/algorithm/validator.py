from mesh_brute.algorithm.wire import PORTNUM_TAG
from mesh_brute.models.search import Confidence, ValidationOutcome
from mesh_brute.portnums import KNOWN_PORTNUMS

PRINTABLE_THRESHOLD = 0.8
_PRINTABLE = frozenset(range(32, 127)) | {10, 13}

INVALID = ValidationOutcome(valid=False, confidence=Confidence.LOW)


def printable_ratio(data: bytes) -> float:
    """Fraction of bytes that are printable ASCII, CR or LF."""
    if not data:
        return 0.0
    return sum(1 for b in data if b in _PRINTABLE) / len(data)


def validate(data: bytes) -> ValidationOutcome:
    """
    Decide whether decrypted bytes look like a real message.

    A leading portnum tag with a non-zero port is accepted, with high
    confidence when the port is a known one. Otherwise mostly-printable
    data is accepted with medium confidence. This is a heuristic and will
    let some garbage through.
    """
    if len(data) < 2:
        return INVALID

    if data[0] == PORTNUM_TAG and 1 <= data[1] <= 256:
        portnum = data[1]
        confidence = Confidence.HIGH if portnum in KNOWN_PORTNUMS else Confidence.MEDIUM
        return ValidationOutcome(valid=True, confidence=confidence, portnum=portnum)

    if printable_ratio(data) > PRINTABLE_THRESHOLD:
        return ValidationOutcome(valid=True, confidence=Confidence.MEDIUM)

    return INVALID
