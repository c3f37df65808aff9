"""Tests for landing_exporter package."""


def test_package_imports():
    """Test that the package can be imported successfully."""
    import landing_exporter

    assert landing_exporter is not None


def test_package_version():
    """Test that the package has a version string."""
    from landing_exporter import __version__

    assert __version__ == "0.1.0"


def test_metrics_imports_before_scanner():
    """Importing the metrics package first must not hit an import cycle."""
    import importlib

    metrics = importlib.import_module("landing_exporter.metrics")
    scanner = importlib.import_module("landing_exporter.scanner")

    assert metrics.MetricPublisher is not None
    assert scanner.ScanManager is not None
