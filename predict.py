# ================== PREDICCIÓN ==================
import numpy as np


def predict_dot_count(model, pixels, count_min):
    """
    Imagen normalizada (size,size) -> (puntos predichos, confianza).
    """
    x = np.expand_dims(np.asarray(pixels, dtype=np.float32), axis=(0,-1))
    p = model.predict(x, verbose=0)[0]
    idx = int(np.argmax(p))
    return idx + count_min, float(p[idx])
