"""
Process template builder.

    canvas     — graph model, dependency sync, ordering and the editor session
    export     — pre-export validation and the task CSV
    admin_api  — async client for the remote template service
    config     — dataclass config sections with environment overrides
"""

__version__ = "0.1.0"
