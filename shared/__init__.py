"""
Shared Kernel

Base classes and application services shared by the domain apps:
value objects, domain events, the unit of work and the message bus.
"""
