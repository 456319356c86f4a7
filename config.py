# ================== CONFIGURACIÓN GENERAL Y DE ENTRENAMIENTO ==================
import logging
from dataclasses import dataclass, fields

# Valores por defecto del formulario
OVERLAP_MODE    = "disallow"      # "allow" | "disallow"
COUNT_MIN       = 1
COUNT_MAX       = 5
BATCHSIZE       = 32
EPOCHS          = 5
UPDATE_EVERY    = 1
IMG_SIZE        = 32
DOT_RADIUS      = 2
SEED            = 42
STEPS_PER_EPOCH = 50
VAL_STEPS       = 5

OVERLAP_MODES = ("allow", "disallow")

# Generación de imágenes
PLACEMENT_ATTEMPTS = 200      # intentos antes de aceptar un punto solapado
VAL_SEED_OFFSET    = 123456   # la validación nunca comparte flujo con el entrenamiento
PREVIEW_QUEUE_SIZE = 8

# Ritmo del bucle (segundos entre pasos, para poder ver la vista previa)
STEP_COOLDOWN = 0.1

# Interfaz
PREVIEW_SIZE = 192
NOT_BUILT    = "(no construido)"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ConfigurationError(ValueError):
    """Configuración de entrenamiento inválida."""


def setup_logging(level=logging.INFO):
    logging.basicConfig(level=level, format=LOG_FORMAT)


@dataclass(frozen=True)
class TrainingConfig:
    """
    Foto inmutable de los campos del formulario, validada una sola vez al iniciar.
    """
    overlap_mode: str = OVERLAP_MODE
    count_min: int = COUNT_MIN
    count_max: int = COUNT_MAX
    batch_size: int = BATCHSIZE
    epochs: int = EPOCHS
    update_every: int = UPDATE_EVERY
    size: int = IMG_SIZE
    dot_radius: int = DOT_RADIUS
    seed: int = SEED
    steps_per_epoch: int = STEPS_PER_EPOCH
    val_steps: int = VAL_STEPS

    def __post_init__(self):
        self.validate()

    @property
    def allow_overlap(self) -> bool:
        return self.overlap_mode == "allow"

    @property
    def num_classes(self) -> int:
        return self.count_max - self.count_min + 1

    @classmethod
    def from_fields(cls, values):
        """
        Construye la configuración desde un dict de campos (texto o enteros).
        Todos los campos son obligatorios.
        """
        kwargs = {}
        for f in fields(cls):
            if f.name not in values:
                raise ConfigurationError(f"Falta el campo '{f.name}'.")
            raw = values[f.name]
            if f.name == "overlap_mode":
                kwargs[f.name] = str(raw).strip()
                continue
            try:
                kwargs[f.name] = int(str(raw).strip())
            except ValueError:
                raise ConfigurationError(f"'{f.name}' debe ser un entero (recibido {raw!r}).") from None
        return cls(**kwargs)

    def validate(self):
        if self.overlap_mode not in OVERLAP_MODES:
            raise ConfigurationError(f"Modo de solape desconocido: {self.overlap_mode!r}.")
        if self.count_min < 0:
            raise ConfigurationError("El número mínimo de puntos no puede ser negativo.")
        if self.count_max < self.count_min:
            raise ConfigurationError(
                f"countMax ({self.count_max}) < countMin ({self.count_min}): no hay clases.")
        for name in ("batch_size", "epochs", "update_every", "dot_radius",
                     "steps_per_epoch", "val_steps"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"'{name}' debe ser >= 1.")
        # dos etapas de pooling 2x2
        if self.size < 4:
            raise ConfigurationError("El tamaño de imagen debe ser >= 4.")
        if self.size <= 2 * self.dot_radius:
            raise ConfigurationError(
                f"Un punto de radio {self.dot_radius} no cabe en una imagen de {self.size}px.")
