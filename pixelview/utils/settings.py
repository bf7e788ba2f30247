from PySide6.QtCore import QSettings, Signal

from pixelview.models.render_options import RenderOptions

# Defaults for settings that are accessed from multiple places.
DEFAULT_SETTINGS = {
    'animate': True,
    'scroll_speed': 4.0,
    'default_view_mode': 'fit',
    'integer_scaling': False,
    'start_fullscreen': True,
    # Keep the text-art render options of the previous document instead of
    # resetting them to the ansi_* defaults below on every load.
    'preserve_render_options': False,
    'ansi_font': 0,
    'ansi_columns': 80,
    'ansi_auto_columns': True,
    'ansi_ice_colors': True,
    'ansi_wide_font': False,
    'ansi_tabs_to_spaces': True,
    'ansi_use_record': True,
    'status_timeout_ms': 3000,
    'cursor_hide_ms': 1500,
    'recent_files': [],
}


class Settings(QSettings):
    # Signal that shows that the setting with the given string was changes
    change = Signal(str, object, name='settingsChanged')

    def __init__(self):
        super().__init__('pixelview', 'pixelview')

    def setValue(self, key, value):
        super().setValue(key, value)
        self.change.emit(key, value)

# Common shared instance to ensure the Signal is also shared
settings = Settings()


def get_setting(key: str):
    default = DEFAULT_SETTINGS[key]
    value_type = type(default) if not isinstance(default, list) else list
    return settings.value(key, defaultValue=default, type=value_type)


def get_default_render_options() -> RenderOptions:
    return RenderOptions(
        tabs_to_spaces=get_setting('ansi_tabs_to_spaces'),
        use_record=get_setting('ansi_use_record'),
        wide_font=get_setting('ansi_wide_font'),
        ice_colors=get_setting('ansi_ice_colors'),
        font_id=get_setting('ansi_font'),
        auto_columns=get_setting('ansi_auto_columns'),
        columns=get_setting('ansi_columns'),
    )
