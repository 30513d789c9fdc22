from gracely.health.surface import GracelyStatus, HealthSurface, StaticHealthSurface

__all__ = ["GracelyStatus", "HealthSurface", "StaticHealthSurface"]
