"""
FlowPad: node-graph editor core.

The graph store, the per-node interaction controller and the editor shell
that wires them together. Rendering is left to an external collaborator
(see flowpad.render and app.py).
"""

__version__ = "0.1.0"
