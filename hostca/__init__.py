from .config import Config
from .actions import Action
from .dispatcher import CertificateAuthority
from .models import TargetSelector, Options, Report, HostOutcome, CertificateStatus


__all__ = ['Config', 'Action', 'CertificateAuthority', 'TargetSelector', 'Options', 'Report',
           'HostOutcome', 'CertificateStatus']
