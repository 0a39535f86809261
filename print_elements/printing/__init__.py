"""
Printing subsystem for print-elements.

This package groups the preparation engine:

- types: element types, language tags, variant options, prepared outputs
- element: PrintJobElement and its prepared state
- preparer: the per-element unit of work and its hooks
- decoders: image, pdf, rtf, xml and raw transforms
- render: text rendering to Pillow surfaces
- job: a minimal owning job that orders outputs by sequence

For convenience, common names are re-exported for easy import.
"""

from .types import *
from .render import *
from .decoders import *
from .element import *
from .preparer import *
from .job import *
