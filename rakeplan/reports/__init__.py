"""CSV report export"""

from .exporters import ReportExporter

__all__ = ['ReportExporter']
