"""ssmrun - send SSM Run Command documents to a fleet and wait for them

Philosophy:
- Ruthless simplicity
- Brick architecture (self-contained modules)
- Fail fast with helpful guidance

ssmrun submits a command document to the instances picked by a target
selector, optionally waits for the whole command to finish, and prints the
output of every instance that failed.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
