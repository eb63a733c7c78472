"""
FSM Workflow Engine

A finite-state-machine workflow engine: register workflow definitions made of
named states and actions, start instances of them and drive the instances
forward by executing actions over HTTP.
"""

__version__ = "1.0.0"
