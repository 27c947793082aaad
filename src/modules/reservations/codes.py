import random
import string

FULFILLMENT_CODE_ALPHABET = string.ascii_uppercase + string.digits


class FulfillmentCodeGenerator:
    """
    Draws shipping handover codes uniformly from A-Z0-9.

    Codes identify a handover for one reservation only, so collisions between
    reservations are acceptable. Pass a seeded `random.Random` for
    reproducible codes; the default draws from the OS.
    """

    def __init__(self, rng: random.Random | None = None, length: int = 8):
        if length <= 0:
            raise ValueError("Code length must be positive")
        self._rng = rng or random.SystemRandom()
        self.length = length

    def generate(self) -> str:
        return "".join(self._rng.choice(FULFILLMENT_CODE_ALPHABET) for _ in range(self.length))
