"""Workflow state machine."""

from .machine import ImagePicker, Workflow
from .state import Notice, Step, WorkflowState, transition

__all__ = ['ImagePicker', 'Notice', 'Step', 'Workflow', 'WorkflowState', 'transition']
