from .build_farm_config import BuildFarmConfig, load_config, DEFAULT_BUILD_PORT

__all__ = ['BuildFarmConfig', 'load_config', 'DEFAULT_BUILD_PORT']
