"""Navigation module for orbit state estimation."""

from .extended_kalman_filter import *
from .sensor_models import *
