# ================== ENTRENAMIENTO: SESIÓN Y BUCLE DE PASOS ==================
import logging
import time
from dataclasses import dataclass
from enum import Enum
from itertools import islice
from typing import Optional

import tensorflow as tf

from config import NOT_BUILT, PREVIEW_QUEUE_SIZE, STEP_COOLDOWN, TrainingConfig
from dataset import DotBatchGenerator, PreviewQueue, PreviewSample
from model_def import build_dots_model, describe_model, evaluate_batch
from predict import predict_dot_count

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE    = "idle"
    RUNNING = "running"
    PAUSED  = "paused"
    DONE    = "done"


@dataclass
class StepReport:
    epoch: int
    step_index: int                       # dentro de la época, desde 1
    total_steps: int
    train_loss: Optional[float]
    train_accuracy: Optional[float]
    val_accuracy: Optional[float]
    preview: Optional[PreviewSample] = None
    predicted_count: Optional[int] = None
    actual_count: Optional[int] = None
    chart_due: bool = True


class TrainingListener:
    """
    Receptor de eventos de la sesión. Por defecto no hace nada.
    """

    def on_status(self, text): pass
    def on_architecture(self, text): pass
    def on_step(self, report): pass
    def on_epoch_end(self, epoch, val_loss, val_accuracy): pass
    def on_reset(self): pass
    def on_charts(self): pass


def sleep_yield(seconds):
    if seconds > 0:
        time.sleep(seconds)


def _empty_history():
    return {"steps": [], "loss": [], "train_acc": [], "val_acc": []}


class _StepCallback(tf.keras.callbacks.Callback):
    def __init__(self, session, epoch, run_id):
        super().__init__()
        self.session = session
        self.epoch = epoch
        self.run_id = run_id

    def on_train_batch_end(self, batch, logs=None):
        self.session._after_step(self.model, self.epoch, batch + 1, logs or {}, self.run_id)


class TrainingSession:
    """
    Estado de una sesión de entrenamiento: IDLE -> RUNNING -> {PAUSED, DONE}.
    reset() vuelve a IDLE desde cualquier estado y descarta el modelo.

    El bucle corre en el hilo del anfitrión: tras cada paso se cede el control
    con `host_yield(cooldown)` (en la UI, bombea el bucle de eventos de Tk).
    Los lotes de entrenamiento se generan en un hilo de tf.data, por eso la cola
    de vista previa es propia de cada start() y está protegida con un lock.
    La pausa se consulta al final de cada paso, nunca a mitad.
    """

    def __init__(self, listener=None, cooldown=STEP_COOLDOWN, host_yield=sleep_yield,
                 preview_capacity=PREVIEW_QUEUE_SIZE):
        self.listener   = listener or TrainingListener()
        self.cooldown   = cooldown
        self.host_yield = host_yield
        self.previews   = PreviewQueue(preview_capacity)

        self.state = SessionState.IDLE
        self.pause_requested = False
        self.total_steps = 0
        self.model = None
        self.config = None
        self.last_error = None
        self.history = _empty_history()

        self._run_id = 0
        self._val_iter = None
        self._training_active = False
        self._charts_stale = False

    @property
    def running(self):
        return self.state is SessionState.RUNNING

    @property
    def busy(self):
        """
        True mientras un start() sigue en la pila, aunque un reset ya lo haya cancelado.
        """
        return self._training_active

    def architecture(self):
        return describe_model(self.model)

    # ---------- Transiciones ----------
    def start(self, config):
        """
        Valida la configuración, construye el modelo y entrena hasta terminar o pausar.
        Devuelve el estado final, o None si ya había un entrenamiento en marcha.
        """
        if self.running or self._training_active:
            logger.debug("start ignorado: ya hay un entrenamiento en marcha")
            return None
        if not isinstance(config, TrainingConfig):
            config = TrainingConfig.from_fields(config)

        if self.model is not None:
            self.model = None
            tf.keras.backend.clear_session()

        self._run_id += 1
        run_id = self._run_id
        self.config = config
        # un productor rezagado del fit anterior escribe en la cola vieja
        self.previews = PreviewQueue(self.previews.capacity)
        self.history = _empty_history()
        self.total_steps = 0
        self.pause_requested = False
        self.last_error = None
        self.state = SessionState.RUNNING
        logger.info("Iniciando entrenamiento: %s", config)

        self._training_active = True
        try:
            tf.keras.utils.set_random_seed(config.seed)
            self.model = build_dots_model(config.size, config.num_classes)
            self.listener.on_architecture(self.architecture())
            self._train(run_id)
        except Exception as exc:
            if run_id == self._run_id:
                self.last_error = exc
                self.state = SessionState.IDLE
                self._status(f"Error: {exc}")
            logger.exception("El entrenamiento se interrumpió por un error")
            raise
        finally:
            self._training_active = False
        return self.state

    def pause(self):
        if not self.running:
            logger.debug("pause ignorado: no hay entrenamiento en marcha")
            return
        self.pause_requested = True
        logger.info("Pausa solicitada; se detendrá al terminar el paso actual")

    def reset(self):
        self._run_id += 1
        if self.model is not None:
            self.model.stop_training = True
        self.model = None
        self.state = SessionState.IDLE
        self.pause_requested = False
        self.total_steps = 0
        self.config = None
        self.last_error = None
        self.history = _empty_history()
        self.previews = PreviewQueue(self.previews.capacity)
        self._val_iter = None
        logger.info("Sesión reiniciada")
        self.listener.on_reset()
        self.listener.on_architecture(NOT_BUILT)
        self._status("Inactivo")

    # ---------- Bucle ----------
    def _status(self, text):
        logger.info(text)
        self.listener.on_status(text)

    def _train(self, run_id):
        cfg = self.config
        model = self.model
        train_gen = DotBatchGenerator(cfg, previews=self.previews)
        val_gen   = DotBatchGenerator(cfg, validation=True)
        train_ds  = train_gen.as_dataset()
        self._val_iter = iter(val_gen)

        self._status("Entrenando")
        for epoch in range(cfg.epochs):
            self._status(f"Época {epoch+1}/{cfg.epochs}")
            model.fit(train_ds, epochs=1, steps_per_epoch=cfg.steps_per_epoch, verbose=0,
                      callbacks=[_StepCallback(self, epoch, run_id)])
            if run_id != self._run_id:
                # reset durante el fit
                return
            if self.pause_requested:
                self.state = SessionState.PAUSED
                if self._charts_stale:
                    self._charts_stale = False
                    self.listener.on_charts()
                self._status("Pausado")
                return
            self._validate_epoch(model, epoch)

        self.state = SessionState.DONE
        self._status("Completado")

    def _after_step(self, model, epoch, step, logs, run_id):
        if run_id != self._run_id:
            model.stop_training = True
            return
        cfg = self.config
        self.total_steps += 1

        preview = self.previews.take()
        predicted = actual = None
        if preview is not None:
            predicted, _ = predict_dot_count(model, preview.pixels, cfg.count_min)
            actual = preview.class_index + cfg.count_min

        loss = logs.get("loss")
        acc  = logs.get("accuracy", logs.get("acc"))
        loss = None if loss is None else float(loss)
        acc  = None if acc is None else float(acc)
        val_acc = self._validation_step(model)

        self.history["steps"].append(self.total_steps)
        self.history["loss"].append(loss)
        self.history["train_acc"].append(acc)
        self.history["val_acc"].append(val_acc)

        report = StepReport(
            epoch=epoch, step_index=step, total_steps=self.total_steps,
            train_loss=loss, train_accuracy=acc, val_accuracy=val_acc,
            preview=preview, predicted_count=predicted, actual_count=actual,
            chart_due=(step % cfg.update_every == 0 or step == cfg.steps_per_epoch
                       or self.pause_requested),
        )
        self._charts_stale = not report.chart_due
        logger.debug("Paso %d (total %d): loss=%s acc=%s val_acc=%s",
                     step, self.total_steps, loss, acc, val_acc)
        self.listener.on_step(report)

        if self.pause_requested:
            model.stop_training = True
        self.host_yield(self.cooldown)
        # el anfitrión pudo pausar o reiniciar mientras tenía el control
        if self.pause_requested or run_id != self._run_id:
            model.stop_training = True

    def _validation_step(self, model):
        try:
            batch = next(self._val_iter)
        except StopIteration:
            return None
        _, acc = evaluate_batch(model, batch.images, batch.labels)
        return acc

    def _validate_epoch(self, model, epoch):
        results = [evaluate_batch(model, b.images, b.labels)
                   for b in islice(self._val_iter, self.config.val_steps)]
        if not results:
            return
        val_loss = sum(r[0] for r in results) / len(results)
        val_acc  = sum(r[1] for r in results) / len(results)
        logger.info("Fin de época %d: val_loss=%.4f val_acc=%.4f", epoch + 1, val_loss, val_acc)
        self.listener.on_epoch_end(epoch, val_loss, val_acc)
