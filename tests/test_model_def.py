"""Test de la arquitectura, el resumen de texto y la evaluación por lote.

Casos:
    - capas y forma de salida de la CNN
    - resumen de arquitectura (y "(no construido)" sin modelo)
    - evaluate_batch devuelve (loss, accuracy) válidos
    - predict_dot_count devuelve un conteo dentro del rango

Ejecutar:
    pytest tests/test_model_def.py -v
"""

import numpy as np

from config import NOT_BUILT
from model_def import build_dots_model, describe_model, evaluate_batch
from predict import predict_dot_count


def test_architecture_layers():
    model = build_dots_model(img_size=16, num_classes=4)
    names = [layer.__class__.__name__ for layer in model.layers]
    assert names == ["Conv2D", "MaxPooling2D", "Conv2D", "MaxPooling2D",
                     "Flatten", "Dense", "Dropout", "Dense"]
    assert model.layers[0].filters == 16
    assert model.layers[2].filters == 32
    assert model.layers[5].units == 64
    assert model.layers[6].rate == 0.25
    assert tuple(model.output.shape) == (None, 4)


def test_describe_model():
    assert describe_model(None) == NOT_BUILT
    model = build_dots_model(img_size=16, num_classes=3)
    text = describe_model(model)
    lines = text.splitlines()
    assert lines[0].endswith("capas: 8")
    assert lines[1].startswith("0: Conv2D")
    assert lines[-1] == f"Total params: {model.count_params()}"


def test_evaluate_batch_range():
    model = build_dots_model(img_size=16, num_classes=3)
    images = np.random.rand(5, 16, 16, 1).astype(np.float32)
    labels = np.eye(3, dtype=np.float32)[[0, 1, 2, 0, 1]]
    loss, acc = evaluate_batch(model, images, labels)
    assert loss > 0
    assert 0.0 <= acc <= 1.0


def test_predict_dot_count_offsets_class():
    model = build_dots_model(img_size=16, num_classes=3)
    count, conf = predict_dot_count(model, np.zeros((16, 16), dtype=np.float32), count_min=2)
    assert 2 <= count <= 4
    assert 0.0 < conf <= 1.0
