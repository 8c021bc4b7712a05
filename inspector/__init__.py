"""
Inspector Module

Pause a test or benchmark and browse the key-value records it wrote:
- Row mapping from raw keys/values to display rows
- Web page with a prefix scan of the store
- Resume gate released from the browser
- One-call inspect() harness
"""

from .errors import InspectorError, TemplateError
from .row_mapper import DisplayRecord, RowMapper, DefaultRowMapper, FunctionRowMapper, as_row_mapper
from .resume_gate import ResumeGate
from .inspector_server import InspectionServer, PageView, print_pause_banner
from .orchestrator import inspect
from .config import InspectorSettings, load_settings

__all__ = [
    'InspectorError',
    'TemplateError',
    'DisplayRecord',
    'RowMapper',
    'DefaultRowMapper',
    'FunctionRowMapper',
    'as_row_mapper',
    'ResumeGate',
    'InspectionServer',
    'PageView',
    'print_pause_banner',
    'inspect',
    'InspectorSettings',
    'load_settings'
]
