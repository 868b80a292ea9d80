from .settings import ShipwrightConfig, load_config, load_yaml_file

__all__ = ['ShipwrightConfig', 'load_config', 'load_yaml_file']
