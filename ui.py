# ================== INTERFAZ GRÁFICA (Tkinter) ==================
import logging
import time
import tkinter as tk
from tkinter import messagebox, ttk

import cv2
import numpy as np
from PIL import Image, ImageTk
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from matplotlib.figure import Figure

from config import (BATCHSIZE, COUNT_MAX, COUNT_MIN, DOT_RADIUS, EPOCHS, IMG_SIZE,
                    NOT_BUILT, OVERLAP_MODE, OVERLAP_MODES, PREVIEW_SIZE, SEED,
                    STEP_COOLDOWN, STEPS_PER_EPOCH, UPDATE_EVERY, VAL_STEPS,
                    ConfigurationError)
from learning import TrainingListener, TrainingSession

logger = logging.getLogger(__name__)

# (campo, etiqueta, valor por defecto)
INT_FIELDS = [
    ("count_min",       "Puntos mín.",       COUNT_MIN),
    ("count_max",       "Puntos máx.",       COUNT_MAX),
    ("batch_size",      "Tamaño de lote",    BATCHSIZE),
    ("epochs",          "Épocas",            EPOCHS),
    ("update_every",    "Actualizar cada",   UPDATE_EVERY),
    ("size",            "Tamaño imagen",     IMG_SIZE),
    ("dot_radius",      "Radio del punto",   DOT_RADIUS),
    ("seed",            "Semilla",           SEED),
    ("steps_per_epoch", "Pasos por época",   STEPS_PER_EPOCH),
    ("val_steps",       "Pasos validación",  VAL_STEPS),
]


def upscale_preview(image, size=PREVIEW_SIZE):
    """
    Escala la imagen de la muestra al lienzo sin suavizar los bordes de los puntos.
    """
    arr = np.asarray(image, dtype=np.uint8)
    big = cv2.resize(arr, (size, size), interpolation=cv2.INTER_NEAREST)
    return Image.fromarray(big)


class DotsApp(TrainingListener):
    def __init__(self, root):
        self.root = root
        self.root.title("Contador de puntos: entrenamiento en vivo")
        self.closing = False
        self.session = TrainingSession(listener=self, cooldown=STEP_COOLDOWN,
                                       host_yield=self._pump_events)

        left  = ttk.Frame(root)
        right = ttk.Frame(root)
        left.pack(side="left", fill="y", padx=10, pady=10)
        right.pack(side="left", fill="both", expand=True, padx=10, pady=10)

        # ---------- Configuración ----------
        form = ttk.LabelFrame(left, text="Configuración")
        form.pack(fill="x")

        ttk.Label(form, text="Solape").grid(row=0, column=0, sticky="w", padx=5, pady=2)
        self.overlap_combo = ttk.Combobox(form, state="readonly", width=10, values=OVERLAP_MODES)
        self.overlap_combo.set(OVERLAP_MODE)
        self.overlap_combo.grid(row=0, column=1, padx=5, pady=2)

        self.field_vars = {}
        for row, (name, label, default) in enumerate(INT_FIELDS, start=1):
            ttk.Label(form, text=label).grid(row=row, column=0, sticky="w", padx=5, pady=2)
            var = tk.StringVar(value=str(default))
            ttk.Entry(form, textvariable=var, width=12).grid(row=row, column=1, padx=5, pady=2)
            self.field_vars[name] = var

        # ---------- Controles ----------
        controls = ttk.Frame(left)
        controls.pack(fill="x", pady=10)
        self.start_btn = ttk.Button(controls, text="Iniciar", command=self.start)
        self.start_btn.pack(side="left", padx=2)
        self.pause_btn = ttk.Button(controls, text="Pausar", command=self.session.pause)
        self.pause_btn.pack(side="left", padx=2)
        self.reset_btn = ttk.Button(controls, text="Reiniciar", command=self.session.reset)
        self.reset_btn.pack(side="left", padx=2)

        # ---------- Estado ----------
        self.progress_var = tk.StringVar(value="Inactivo")
        self.loss_var     = tk.StringVar(value="-")
        self.acc_var      = tk.StringVar(value="-")
        self.batch_var    = tk.StringVar(value="-")
        self.pred_var     = tk.StringVar(value="")
        info = ttk.Frame(left)
        info.pack(fill="x")
        for row, (label, var) in enumerate([("Estado", self.progress_var), ("Loss", self.loss_var),
                                            ("Accuracy", self.acc_var), ("Lote", self.batch_var)]):
            ttk.Label(info, text=label + ":").grid(row=row, column=0, sticky="w")
            ttk.Label(info, textvariable=var).grid(row=row, column=1, sticky="w")

        # ---------- Vista previa ----------
        self.preview_label = tk.Label(left, bg="black")
        self.preview_label.pack(pady=(10,5))
        self._show_preview(None)
        ttk.Label(left, textvariable=self.pred_var, font=("Arial", 12)).pack()

        # ---------- Gráficas ----------
        self.figure = Figure(figsize=(6, 4), dpi=100)
        self.acc_ax  = self.figure.add_subplot(211)
        self.loss_ax = self.figure.add_subplot(212)
        self.chart = FigureCanvasTkAgg(self.figure, master=right)
        self.chart.get_tk_widget().pack(fill="both", expand=True)
        self._draw_charts()

        # ---------- Arquitectura ----------
        self.arch_text = tk.Text(right, height=12, width=70, font=("Courier", 9))
        self.arch_text.pack(fill="x", pady=(10,0))
        self.on_architecture(NOT_BUILT)

        self.root.protocol("WM_DELETE_WINDOW", self.on_close)

    # ---------- Acciones ----------
    def read_fields(self):
        values = {name: var.get() for name, var in self.field_vars.items()}
        values["overlap_mode"] = self.overlap_combo.get()
        return values

    def start(self):
        if self.session.running:
            return
        if self.session.busy:
            # un fit cancelado por reset todavía se está deshaciendo
            self.root.after(50, self.start)
            return
        self.root.after(0, self._run_training)

    def _run_training(self):
        self._draw_charts()
        try:
            self.session.start(self.read_fields())
        except ConfigurationError as exc:
            logger.warning("Configuración inválida: %s", exc)
            messagebox.showerror("Configuración inválida", str(exc))
        except Exception as exc:
            if not self.closing:
                messagebox.showerror("Error de entrenamiento", str(exc))

    def _pump_events(self, seconds):
        """
        Cede el control a Tk durante `seconds`, así la ventana sigue respondiendo.
        """
        deadline = time.monotonic() + seconds
        while not self.closing:
            self.root.update()
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            time.sleep(min(0.01, remaining))

    # ---------- Eventos de la sesión ----------
    def on_status(self, text):
        self.progress_var.set(text)

    def on_architecture(self, text):
        self.arch_text.delete("1.0", tk.END)
        self.arch_text.insert(tk.END, text)

    def on_step(self, report):
        if report.preview is not None:
            self._show_preview(report.preview.image)
            self.pred_var.set(f"Predicho: {report.predicted_count} puntos | "
                              f"Real: {report.actual_count} puntos")
        if report.train_loss is not None:
            self.loss_var.set(f"{report.train_loss:.4f}")
        if report.train_accuracy is not None:
            self.acc_var.set(f"{report.train_accuracy:.4f}")
        self.batch_var.set(f"{report.step_index} (total {report.total_steps})")
        if report.chart_due:
            self._draw_charts()

    def _show_preview(self, image):
        if image is None:
            image = Image.new("L", (PREVIEW_SIZE, PREVIEW_SIZE), 0)
        imgtk = ImageTk.PhotoImage(image=upscale_preview(image))
        self.preview_label.imgtk = imgtk
        self.preview_label.configure(image=imgtk)

    def on_charts(self):
        self._draw_charts()

    def on_epoch_end(self, epoch, val_loss, val_accuracy):
        self.progress_var.set(f"Época {epoch+1}: val_acc={val_accuracy:.3f}")

    def on_reset(self):
        self.loss_var.set("-")
        self.acc_var.set("-")
        self.batch_var.set("-")
        self.pred_var.set("")
        self._show_preview(None)
        self._draw_charts()

    def _draw_charts(self):
        h = self.session.history
        self.acc_ax.clear()
        self.acc_ax.set_ylim(0, 1)
        self.acc_ax.set_ylabel("Accuracy")
        self.acc_ax.plot(h["steps"], [np.nan if v is None else v for v in h["train_acc"]],
                         color="blue", label="Train Acc")
        self.acc_ax.plot(h["steps"], [np.nan if v is None else v for v in h["val_acc"]],
                         color="green", label="Val Acc")
        self.acc_ax.legend(loc="lower right")

        self.loss_ax.clear()
        self.loss_ax.set_ylabel("Loss")
        self.loss_ax.set_xlabel("Paso")
        self.loss_ax.plot(h["steps"], [np.nan if v is None else v for v in h["loss"]], color="red")
        self.chart.draw_idle()

    # ---------- Cierre ----------
    def on_close(self):
        self.closing = True
        self.session.reset()
        self.root.destroy()
