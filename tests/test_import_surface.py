import importlib


def test_public_api_exports():
    package = importlib.import_module("content_analytics")
    for name in package.__all__:
        assert hasattr(package, name), f"content_analytics.{name} missing"


def test_cli_entrypoint_importable():
    module = importlib.import_module("cli.run_analysis")
    assert callable(module.main)
