from .formats import FrameFormats as FrameFormats, format_from_path as format_from_path
from .sink import save as save
from .source import load as load
