# ================== GENERADOR PSEUDOALEATORIO DETERMINISTA ==================
MASK32 = 0xFFFFFFFF


def _imul(a, b):
    return (a * b) & MASK32


class Mulberry32:
    """
    Mulberry32: estado de 32 bits, floats en [0, 1).
    Misma semilla -> misma secuencia, bit a bit.
    """

    def __init__(self, seed:int):
        self.state = int(seed) & MASK32

    def next_float(self) -> float:
        self.state = (self.state + 0x6D2B79F5) & MASK32
        t = self.state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
        return ((t ^ (t >> 14)) & MASK32) / 4294967296

    __call__ = next_float

    def spawn(self):
        """
        Subflujo por imagen, sembrado con una extracción del flujo padre.
        """
        return Mulberry32(int(self.next_float() * 1e9))
