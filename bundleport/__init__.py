"""bundleport - import OSGi bundles into multi-module Maven projects."""

__version__ = "0.1.0"
