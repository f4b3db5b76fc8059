from typing import Callable

ROUTES_PATH = {
    "Login": "/",
    "Bills": "/bills",
    "NewBill": "/bills/new",
    "Dashboard": "/dashboard",
}

# Navigation collaborator: called with a symbolic route name ("Bills", "NewBill")
Navigate = Callable[[str], None]


def route_path(route_name: str) -> str:
    """Resolve a symbolic route name to its path"""
    if route_name not in ROUTES_PATH:
        raise KeyError(f"Unknown route: {route_name}")
    return ROUTES_PATH[route_name]
