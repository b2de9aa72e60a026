import datetime


def datetime_to_str(date: datetime.datetime, *, decimal: bool = False) -> str:
	fmt = '%Y-%m-%d %H:%M:%S'
	if decimal:
		fmt += '.%f'
	return date.strftime(fmt)


def get_now_iso_str() -> str:
	"""
	Current UTC time in ISO-8601 with millisecond precision, e.g. 2024-01-02T03:04:05.678Z
	"""
	now = datetime.datetime.now(datetime.timezone.utc)
	return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def iso_str_to_datetime(s: str) -> datetime.datetime:
	if s.endswith('Z'):
		s = s[:-1] + '+00:00'
	return datetime.datetime.fromisoformat(s)


def iso_str_to_local_date_str(s: str, *, decimal: bool = False) -> str:
	try:
		date = iso_str_to_datetime(s)
	except ValueError:
		return s
	if date.tzinfo is not None:
		date = date.astimezone()
	return datetime_to_str(date, decimal=decimal)
