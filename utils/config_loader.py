"""
配置載入器
支援 YAML 配置文件載入、環境變數替換與預設值補齊
"""

import copy
import os
import re
import yaml
from pathlib import Path
from typing import Dict, Any


# 未在 YAML 中設定時使用的預設值
DEFAULTS: Dict[str, Any] = {
    'sync': {
        'max_workers': 1,
        'watch_delay': 10,
    },
    'file_patterns': {
        'include': ['*.mp4'],
    },
    'converter': {
        'ffmpeg_bin': 'ffmpeg',
        'fps': 10,
        'width': 480,
        'scale_flags': 'lanczos',
        'timeout': 600,
    },
    'readme': {
        'start_marker': '<!-- START_GIFS -->',
        'end_marker': '<!-- END_GIFS -->',
    },
    'logging': {
        'dir': 'logs',
    },
}

MANIFEST_FILENAME = 'gif.manifest'


class ConfigLoader:
    """配置載入器"""

    @staticmethod
    def load(config_path: str) -> Dict[str, Any]:
        """
        載入配置文件

        Args:
            config_path: 配置文件路徑

        Returns:
            已補齊預設值的配置字典

        Raises:
            FileNotFoundError: 配置文件不存在
            ValueError: 配置格式錯誤或缺少必要欄位
        """
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f"配置文件不存在: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)

        if not isinstance(config, dict):
            raise ValueError(f"配置文件格式錯誤（頂層必須是 mapping）: {config_path}")

        config = ConfigLoader._replace_env_vars(config)
        ConfigLoader._validate_config(config)

        return ConfigLoader.apply_defaults(config)

    @staticmethod
    def _replace_env_vars(obj: Any) -> Any:
        """
        遞迴替換配置中的環境變數
        支援 ${VAR_NAME} 和 $VAR_NAME 格式
        """
        if isinstance(obj, dict):
            return {k: ConfigLoader._replace_env_vars(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [ConfigLoader._replace_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            pattern = r'\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)'

            def replacer(match):
                var_name = match.group(1) or match.group(2)
                value = os.getenv(var_name)
                if value is None:
                    raise ValueError(
                        f"環境變數 '{var_name}' 未設定，"
                        f"請執行: export {var_name}='your_value'"
                    )
                return value

            return re.sub(pattern, replacer, obj)
        else:
            return obj

    @staticmethod
    def _validate_config(config: Dict[str, Any]) -> None:
        """
        驗證配置的必要欄位

        Raises:
            ValueError: 配置驗證失敗
        """
        required_fields = [
            ('project', 'name'),
            ('project', 'type'),
            ('sync', 'source_folder'),
            ('sync', 'output_folder'),
        ]

        for *path, field in required_fields:
            obj = config
            try:
                for key in path:
                    obj = obj[key]
                if field not in obj:
                    raise KeyError
            except (KeyError, TypeError):
                field_path = '.'.join(path + [field])
                raise ValueError(f"配置缺少必要欄位: {field_path}")

        max_workers = ConfigLoader.get_nested(config, 'sync.max_workers', 1)
        if not isinstance(max_workers, int) or max_workers < 1:
            raise ValueError(f"sync.max_workers 必須是正整數: {max_workers!r}")

    @staticmethod
    def apply_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
        """
        補齊未設定的區段與欄位（不覆寫使用者設定）

        manifest_file 未設定時預設放在輸出資料夾內
        """
        merged: Dict[str, Any] = copy.deepcopy(config)

        for section, values in DEFAULTS.items():
            current = merged.get(section) or {}
            merged[section] = {**copy.deepcopy(values), **current}

        sync = merged['sync']
        if not sync.get('manifest_file'):
            sync['manifest_file'] = str(Path(sync['output_folder']) / MANIFEST_FILENAME)

        return merged

    @staticmethod
    def get_nested(config: Dict[str, Any], path: str, default: Any = None) -> Any:
        """
        取得嵌套配置值

        Args:
            config: 配置字典
            path: 點分隔的路徑，如 'converter.fps'
            default: 預設值

        Example:
            fps = ConfigLoader.get_nested(config, 'converter.fps', 10)
        """
        keys = path.split('.')
        obj = config

        try:
            for key in keys:
                obj = obj[key]
            return obj
        except (KeyError, TypeError):
            return default
