"""
Client for the RAUC D-Bus installer service.

``start_install`` runs an installation on a background worker and reports its
progress and result through callbacks.
"""

from rauc_installer.installer import start_install
from rauc_installer.models.install_context import InstallContext
from rauc_installer.models.install_result import InstallResult

__all__ = ["InstallContext", "InstallResult", "start_install"]
