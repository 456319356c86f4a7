# ================== GENERADOR DE LOTES SINTÉTICOS ==================
import logging
import threading
from collections import deque
from dataclasses import dataclass

import numpy as np
import tensorflow as tf

from config import PREVIEW_QUEUE_SIZE, VAL_SEED_OFFSET, TrainingConfig
from rng import Mulberry32
from scene import render_scene

logger = logging.getLogger(__name__)


@dataclass
class PreviewSample:
    image: object            # PIL.Image en escala de grises
    pixels: np.ndarray       # copia (size, size) float32
    class_index: int


@dataclass
class Batch:
    images: np.ndarray       # (B, S, S, 1) float32
    labels: np.ndarray       # (B, C) one-hot float32
    counts: np.ndarray       # (B,) número de puntos


class PreviewQueue:
    """
    FIFO acotada de un productor y un consumidor.
    Llena, descarta la muestra más antigua.

    El productor (DotBatchGenerator) corre en el hilo de tf.data y el consumidor
    en el hilo del bucle de entrenamiento; todas las operaciones toman el lock.
    """

    def __init__(self, capacity:int = PREVIEW_QUEUE_SIZE):
        self._items = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self.capacity = capacity
        self.dropped = 0

    def put(self, sample:PreviewSample):
        with self._lock:
            if len(self._items) == self.capacity:
                self.dropped += 1
                logger.debug("Cola de vista previa llena; se descarta la muestra más antigua")
            self._items.append(sample)

    def take(self):
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def clear(self):
        with self._lock:
            self._items.clear()
            self.dropped = 0

    def __len__(self):
        with self._lock:
            return len(self._items)


class DotBatchGenerator:
    """
    Flujo infinito de lotes etiquetados. Cada muestra usa su propio RNG derivado
    del flujo padre, así que la secuencia es reproducible para una semilla.
    Solo el generador de entrenamiento alimenta la cola de vista previa.
    """

    def __init__(self, config:TrainingConfig, validation=False, previews=None):
        self.config = config
        self.validation = validation
        self.previews = None if validation else previews
        self.seed = config.seed + (VAL_SEED_OFFSET if validation else 0)
        self._rng = Mulberry32(self.seed)

    def restart(self):
        self._rng = Mulberry32(self.seed)

    def next_batch(self) -> Batch:
        cfg = self.config
        size, n_classes = cfg.size, cfg.num_classes
        images = np.zeros((cfg.batch_size, size, size, 1), dtype=np.float32)
        labels = np.zeros((cfg.batch_size, n_classes), dtype=np.float32)
        counts = np.zeros((cfg.batch_size,), dtype=np.int32)

        first = None
        for b in range(cfg.batch_size):
            rng = self._rng.spawn()
            n = int(rng() * n_classes) + cfg.count_min
            scene = render_scene(size, n, cfg.dot_radius, rng, cfg.allow_overlap)
            images[b, :, :, 0] = scene.pixels
            labels[b, n - cfg.count_min] = 1.0
            counts[b] = n
            if b == 0 and self.previews is not None:
                first = PreviewSample(image=scene.image.copy(),
                                      pixels=scene.pixels.copy(),
                                      class_index=n - cfg.count_min)

        if first is not None:
            self.previews.put(first)
        return Batch(images=images, labels=labels, counts=counts)

    def __call__(self):
        # Reiniciar la llamada continúa el flujo padre (no vuelve a la semilla)
        while True:
            batch = self.next_batch()
            yield batch.images, batch.labels

    def __iter__(self):
        while True:
            yield self.next_batch()

    def as_dataset(self):
        cfg = self.config
        signature = (
            tf.TensorSpec(shape=(cfg.batch_size, cfg.size, cfg.size, 1), dtype=tf.float32),
            tf.TensorSpec(shape=(cfg.batch_size, cfg.num_classes), dtype=tf.float32),
        )
        return tf.data.Dataset.from_generator(self, output_signature=signature)
