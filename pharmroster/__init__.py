"""薬剤部 勤務表・午前業務 自動割当システム

休日数の目標と連勤上限を満たすように休みを自動で割り当て、
薬剤師の午前業務を負荷が偏らないように自動で配分するシステム。
"""

try:
    from importlib.metadata import version

    __version__ = version("pharmroster")
except (ImportError, Exception):
    # Fallback for development installs or when package is not installed
    __version__ = "0.1.0"

__all__ = ["__version__"]
