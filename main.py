# ================== PUNTO DE ENTRADA ==================
import argparse
import logging
import sys

import config
from config import ConfigurationError, TrainingConfig, setup_logging
from learning import TrainingListener, TrainingSession

logger = logging.getLogger(__name__)


def _fmt(value):
    return "-" if value is None else f"{value:.4f}"


class ConsoleListener(TrainingListener):
    def on_architecture(self, text):
        logger.info("Arquitectura:\n%s", text)

    def on_step(self, report):
        line = (f"época {report.epoch+1} paso {report.step_index} (total {report.total_steps}) "
                f"loss={_fmt(report.train_loss)} acc={_fmt(report.train_accuracy)}")
        if report.val_accuracy is not None:
            line += f" val_acc={_fmt(report.val_accuracy)}"
        if report.preview is not None:
            line += f" | predicho {report.predicted_count} / real {report.actual_count}"
        logger.info(line)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Entrena una CNN que cuenta puntos en imágenes sintéticas")
    parser.add_argument("--headless", action="store_true", help="entrenar en consola, sin ventana")
    parser.add_argument("--overlap-mode", choices=config.OVERLAP_MODES, default=config.OVERLAP_MODE)
    parser.add_argument("--count-min", type=int, default=config.COUNT_MIN)
    parser.add_argument("--count-max", type=int, default=config.COUNT_MAX)
    parser.add_argument("--batch-size", type=int, default=config.BATCHSIZE)
    parser.add_argument("--epochs", type=int, default=config.EPOCHS)
    parser.add_argument("--update-every", type=int, default=config.UPDATE_EVERY)
    parser.add_argument("--size", type=int, default=config.IMG_SIZE)
    parser.add_argument("--dot-radius", type=int, default=config.DOT_RADIUS)
    parser.add_argument("--seed", type=int, default=config.SEED)
    parser.add_argument("--steps-per-epoch", type=int, default=config.STEPS_PER_EPOCH)
    parser.add_argument("--val-steps", type=int, default=config.VAL_STEPS)
    parser.add_argument("--cooldown", type=float, default=0.0,
                        help="segundos de espera entre pasos en modo consola")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def run_headless(args):
    try:
        cfg = TrainingConfig(
            overlap_mode=args.overlap_mode, count_min=args.count_min, count_max=args.count_max,
            batch_size=args.batch_size, epochs=args.epochs, update_every=args.update_every,
            size=args.size, dot_radius=args.dot_radius, seed=args.seed,
            steps_per_epoch=args.steps_per_epoch, val_steps=args.val_steps)
    except ConfigurationError as exc:
        logger.error("Configuración inválida: %s", exc)
        return 2
    session = TrainingSession(listener=ConsoleListener(), cooldown=args.cooldown)
    try:
        state = session.start(cfg)
    except Exception:
        # la sesión ya lo registró con traza
        return 1
    logger.info("Estado final: %s (%d pasos)", state.value, session.total_steps)
    return 0


def run_gui():
    import tkinter as tk
    from tkinter import ttk

    from ui import DotsApp

    root = tk.Tk()
    try:
        ttk.Style(root).theme_use("clam")
    except tk.TclError:
        pass
    DotsApp(root)
    root.mainloop()
    return 0


def main(argv=None):
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    if args.headless:
        return run_headless(args)
    return run_gui()


if __name__ == "__main__":
    sys.exit(main())
