"""auth/ -- Authentication and authorization package for Study Planner.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/, planner/, or ai/.
api/ imports from auth/, not the other way around.
"""
