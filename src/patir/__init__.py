from .model import Status, ExitStrategy, StepState
from .errors import PatirError, ParameterError, ConfigurationError
from .command import Command, ProcessCommand, BlockCommand
from .sequence import CommandSequence, SequenceStatus
from .configuration import Configurator
from .log import setup_logger
from .dsl import sh, block, sequence, SequenceBuilder, build
from .runner import load_workflow, run_sequence

__version__ = "0.9.0"

__all__ = [
    "Status", "ExitStrategy", "StepState",
    "PatirError", "ParameterError", "ConfigurationError",
    "Command", "ProcessCommand", "BlockCommand",
    "CommandSequence", "SequenceStatus",
    "Configurator", "setup_logger",
    "sh", "block", "sequence", "SequenceBuilder", "build",
    "load_workflow", "run_sequence",
]
