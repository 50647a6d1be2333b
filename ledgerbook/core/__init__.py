# Core Package
# Pure business rules over plain models (no database access)
