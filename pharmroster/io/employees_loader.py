import tomllib

from pharmroster.domain.types import JOB_TYPE_LABELS, Employee, JobType, RestGoal

# 設定ファイルでは英語名・日本語名のどちらでも職種を書ける
_JOB_TYPE_BY_LABEL = {label: job for job, label in JOB_TYPE_LABELS.items()}


def parse_job_type(raw: str) -> JobType:
    raw = (raw or "").strip()
    if raw in _JOB_TYPE_BY_LABEL:
        return _JOB_TYPE_BY_LABEL[raw]
    try:
        return JobType(raw)
    except ValueError as e:
        raise ValueError(f"不明な職種です: '{raw}'") from e


def _read(config_path: str) -> dict:
    with open(config_path, "rb") as f:
        return tomllib.loads(f.read().decode("utf-8-sig"))


def load_employees(config_path: str) -> list[Employee]:
    """Load the staff roster from a TOML file.

    Args:
        config_path (str): Path to the TOML configuration file.

    Returns:
        List[Employee]: Employees in file order.
    """
    employees: list[Employee] = []
    seen: set[int] = set()

    config = _read(config_path)
    for entry in config.get("employees", []):
        employee_id = int(entry["id"])
        if employee_id in seen:
            raise ValueError(f"{config_path}: 職員ID {employee_id} が重複しています")
        seen.add(employee_id)
        employees.append(
            Employee(
                id=employee_id,
                name=entry["name"],
                job_type=parse_job_type(entry.get("job_type", JobType.PHARMACIST.value)),
            )
        )

    return employees


def load_rest_goals(config_path: str) -> dict[int, RestGoal]:
    """
    職員ごとの月の目標休日数 {id: RestGoal(min, max)}。
    rest_min を書いていない職員は含めない(日数調整の対象外)。
    rest_max を省略した場合は rest_min と同じ。
    """
    goals: dict[int, RestGoal] = {}

    config = _read(config_path)
    for entry in config.get("employees", []):
        if "rest_min" not in entry:
            continue
        rest_min = float(entry["rest_min"])
        rest_max = float(entry.get("rest_max", rest_min))
        if rest_min < 0 or rest_max < 0:
            raise ValueError(f"{config_path}: {entry.get('name')} の目標休日数が負の値です")
        goals[int(entry["id"])] = RestGoal(min=rest_min, max=rest_max)

    return goals
