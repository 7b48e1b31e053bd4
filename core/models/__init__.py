from .number_series import NumberSeries
