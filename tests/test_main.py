"""Test del punto de entrada en consola.

Casos:
    - argumentos por defecto y modo --headless
    - logger del módulo con el nombre del módulo
    - configuración inválida: código de salida 2 sin entrenar

Ejecutar:
    pytest tests/test_main.py -v
"""

import main


def test_module_logger_uses_module_name():
    assert main.logger.name == main.__name__ == "main"


def test_parse_args_defaults():
    args = main.parse_args(["--headless", "--epochs", "1"])
    assert args.headless is True
    assert args.epochs == 1
    assert args.overlap_mode == "disallow"


def test_headless_rejects_invalid_configuration():
    args = main.parse_args(["--headless", "--count-min", "4", "--count-max", "2"])
    assert main.run_headless(args) == 2
