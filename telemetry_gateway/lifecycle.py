from enum import Enum


class ComponentState(Enum):
    """Run state shared by the stateful gateway components"""
    STOPPED = 'stopped'
    STARTING = 'starting'
    RUNNING = 'running'
    STOPPING = 'stopping'
