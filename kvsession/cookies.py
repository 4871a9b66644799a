"""Writes the session cookie on a response."""

from werkzeug.wrappers import Response

from .domain import CookieOptions


def set_cookie(response: Response, name: str, value: str,
               options: CookieOptions) -> None:
    """
    Attach a ``Set-Cookie`` header for the session cookie.

    Parameters
    ----------
    response : :class:`werkzeug.wrappers.Response`
    name : str
        Cookie name; the same as the session name.
    value : str
        Encoded session ID.
    options : :class:`.CookieOptions`
        A positive ``max_age`` sets ``Max-Age`` (and a matching ``Expires``),
        zero makes a browser-session cookie, and a negative value expires the
        cookie immediately.

    """
    if options.max_age < 0:
        value = ''
        max_age = 0
        expires = 0    # The epoch.
    elif options.max_age == 0:
        max_age = None
        expires = None
    else:
        max_age = options.max_age
        expires = None  # Derived from max_age by werkzeug.
    response.set_cookie(name, value, max_age=max_age, expires=expires,
                        path=options.path, domain=options.domain,
                        secure=options.secure, httponly=options.http_only,
                        samesite=options.same_site)
