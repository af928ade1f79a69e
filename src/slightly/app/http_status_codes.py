"""HTTP status code -> reason phrase."""

from http import HTTPStatus

http_status_codes: dict[int, str] = {s.value: s.phrase for s in HTTPStatus}
