"""Services — one module per pipeline step.

Each step function takes a BuildContext and returns a Receipt.
"""
