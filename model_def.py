# ================== ARQUITECTURA (CONFIGURACIÓN DE NEURONAS) ==================
import numpy as np
import tensorflow as tf
from tensorflow.keras import layers, models

from config import NOT_BUILT


def build_dots_model(img_size=32, num_classes=5):
    """
    CNN para contar puntos: dos bloques conv+pool, densa y softmax por clase.
    """
    model = models.Sequential([
        layers.Input(shape=(img_size, img_size, 1)),
        layers.Conv2D(16, (3,3), activation='relu', padding='same'),
        layers.MaxPooling2D((2,2)),

        layers.Conv2D(32, (3,3), activation='relu', padding='same'),
        layers.MaxPooling2D((2,2)),

        layers.Flatten(),
        layers.Dense(64, activation='relu'),
        layers.Dropout(0.25),
        layers.Dense(num_classes, activation='softmax')
    ], name="dots_cnn")
    model.compile(optimizer='adam',
                  loss='categorical_crossentropy',
                  metrics=['accuracy'])
    return model


def describe_model(model):
    """
    Resumen de texto de la arquitectura (capas, formas de salida, parámetros).
    """
    if model is None:
        return NOT_BUILT
    lines = [f"{model.name} - capas: {len(model.layers)}"]
    for i, layer in enumerate(model.layers):
        out = tuple(layer.output.shape)
        lines.append(f"{i}: {layer.__class__.__name__}  out={out}  params={layer.count_params()}")
    lines.append(f"Total params: {model.count_params()}")
    return "\n".join(lines)


def evaluate_batch(model, images, labels):
    """
    (loss, accuracy) de un lote en modo inferencia.
    No usa model.evaluate para no reiniciar las métricas de un fit en curso.
    """
    probs = model(images, training=False)
    loss = tf.reduce_mean(tf.keras.losses.categorical_crossentropy(labels, probs))
    probs = np.asarray(probs)
    acc = np.mean(np.argmax(probs, axis=-1) == np.argmax(labels, axis=-1))
    return float(loss), float(acc)
