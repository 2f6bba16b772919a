"""
Core subsystem.

Components:
- ports.py: Protocols for the backing store and the presentation collaborator
- coordinator.py: session state + command handling (reload after every mutation)
"""
