"""Client for the catalog/admin API.

Authenticated with a bearer token obtained from ``/admin/login``. A 401 from
any endpoint drops the stored token, mirroring a forced logout.
"""

from pathlib import Path
from typing import Any, Optional

import httpx
from loguru import logger

from catalog_admin.clients.base_client import ApiClient, ApiError
from catalog_admin.config import AppConfig
from catalog_admin.models import (
    CatalogProduct,
    Category,
    Pagination,
    SchedulerTask,
    Vendor,
    VendorAddress,
)


class CatalogApiClient(ApiClient):
    """Wrapper around the admin catalog REST API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(base_url, timeout, transport=transport)
        self.token: Optional[str] = None
        if token:
            self.set_token(token)

    @classmethod
    def from_config(cls, config: AppConfig) -> "CatalogApiClient":
        return cls(
            config.catalog_api_url,
            timeout=config.catalog_timeout,
            token=config.admin_token,
        )

    def set_token(self, token: Optional[str]) -> None:
        self.token = token
        if token:
            self.client.headers["Authorization"] = f"Bearer {token}"
        else:
            self.client.headers.pop("Authorization", None)

    def on_error_status(self, response: httpx.Response) -> None:
        if response.status_code == 401 and self.token:
            logger.warning("Admin token rejected, clearing session")
            self.set_token(None)

    # -- Authentication -------------------------------------------------------

    def login(self, email: str, password: str) -> dict[str, Any]:
        """Authenticate and keep the returned token for later requests.

        Returns:
            The admin profile from the login response

        Raises:
            ApiError: If credentials are rejected or no token is returned
        """
        data = self.request_data(
            "POST",
            "/admin/login",
            "Login failed. Please try again.",
            json={"email": email, "password": password},
        ) or {}
        token = data.get("token")
        if not token:
            raise ApiError("Login failed. Please try again.", payload=data)

        self.set_token(token)
        logger.success(f"Logged in as {email}")
        return data.get("admin") or {}

    def logout(self) -> None:
        try:
            self.request("POST", "/admin/logout", "Logout failed. Please try again.")
        finally:
            self.set_token(None)

    def get_profile(self) -> dict[str, Any]:
        data = self.request_data("GET", "/admin/me", "Failed to fetch admin profile.")
        return (data or {}).get("admin") or {}

    def change_password(self, current_password: str, new_password: str) -> dict[str, Any]:
        if not new_password:
            raise ValueError("New password must not be empty")
        if current_password == new_password:
            raise ValueError("New password must differ from the current password")
        return self.request_data(
            "POST",
            "/admin/change-password",
            "Failed to change password.",
            json={"currentPassword": current_password, "newPassword": new_password},
        ) or {}

    def verify_token(self) -> bool:
        try:
            body = self.request("GET", "/admin/verify", "Token verification failed.")
        except ApiError as e:
            if e.status_code == 401:
                return False
            raise
        return bool(body.get("success"))

    # -- Vendors ----------------------------------------------------------------

    def create_vendor(
        self,
        name: str,
        email: str,
        password: str,
        phone: str,
        shop_name: str,
        address: VendorAddress,
    ) -> Vendor:
        data = self.request_data(
            "POST",
            "/admin/vendor",
            "Failed to create vendor.",
            json={
                "name": name,
                "email": email,
                "password": password,
                "phone": phone,
                "shopName": shop_name,
                "address": address.to_payload(),
            },
        ) or {}
        return Vendor.from_api(data.get("vendor") or {})

    def list_vendors(self) -> list[Vendor]:
        data = self.request_data("GET", "/admin/vendors", "Failed to fetch vendors.") or {}
        return [Vendor.from_api(item) for item in data.get("vendors") or []]

    # -- Categories -------------------------------------------------------------

    def get_category_tree(self) -> list[Category]:
        """Fetch the full main -> sub -> sub-sub category tree."""
        data = self.request_data(
            "GET", "/admin/categories", "Failed to fetch categories."
        ) or {}
        return [Category.from_api(item) for item in data.get("categories") or []]

    def create_category(self, name: str, description: Optional[str] = None) -> Category:
        payload = {"name": name}
        if description:
            payload["description"] = description
        data = self.request_data(
            "POST", "/admin/category", "Failed to create category.", json=payload
        ) or {}
        return Category.from_api(data.get("category") or {})

    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Category:
        payload: dict[str, Any] = {}
        if name is not None:
            payload["name"] = name
        if description is not None:
            payload["description"] = description
        if is_active is not None:
            payload["isActive"] = is_active
        if not payload:
            raise ValueError("Nothing to update")

        data = self.request_data(
            "PUT",
            f"/admin/category/{category_id}",
            "Failed to update category.",
            json=payload,
        ) or {}
        return Category.from_api(data.get("category") or {})

    def delete_category(self, category_id: str) -> None:
        self.request_data(
            "DELETE", f"/admin/category/{category_id}", "Failed to delete category."
        )

    def create_subcategory(
        self, name: str, parent_category_id: str, description: Optional[str] = None
    ) -> Category:
        payload = {"name": name, "parentCategoryId": parent_category_id}
        if description:
            payload["description"] = description
        data = self.request_data(
            "POST", "/admin/subcategory", "Failed to create subcategory.", json=payload
        ) or {}
        return Category.from_api(data.get("subcategory") or {})

    # -- Products ---------------------------------------------------------------

    def list_products(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> tuple[list[CatalogProduct], Pagination]:
        data = self.request_data(
            "GET",
            "/admin/products",
            "Failed to fetch products.",
            params={"page": page, "limit": limit, "search": search},
        ) or {}
        products = [CatalogProduct.from_api(item) for item in data.get("products") or []]
        return products, Pagination.from_api(data.get("pagination"))

    def create_product(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = self.request_data(
            "POST", "/admin/products", "Failed to insert product.", json=payload
        ) or {}
        return data.get("product") or data

    def update_product(self, product_id: str, fields: dict[str, Any]) -> CatalogProduct:
        data = self.request_data(
            "PUT",
            f"/admin/products/{product_id}",
            "Failed to update product.",
            json=fields,
        ) or {}
        return CatalogProduct.from_api(data.get("product") or {})

    def bulk_upload_products(self, file_path: str | Path) -> dict[str, Any]:
        """Upload a CSV/XLSX file as-is; the server does the authoritative parse."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Upload file not found: {file_path}")

        with open(path, "rb") as f:
            body = self.request(
                "POST",
                "/admin/products/bulk-upload",
                "Failed to bulk upload products.",
                files={"file": (path.name, f)},
            )
        if body.get("success") is False:
            raise ApiError(body.get("message") or "Failed to bulk upload products.")
        return body

    # -- Scheduler tasks --------------------------------------------------------

    def list_scheduler_tasks(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        platform: Optional[str] = None,
        status: Optional[str] = None,
        result_status: Optional[str] = None,
        task_type: Optional[str] = None,
    ) -> tuple[list[SchedulerTask], Pagination]:
        data = self.request_data(
            "GET",
            "/admin/scheduler/tasks",
            "Failed to fetch scheduler tasks.",
            params={
                "page": page,
                "limit": limit,
                "search": search,
                "platform": platform,
                "status": status,
                "resultStatus": result_status,
                "taskType": task_type,
            },
        ) or {}
        tasks = [SchedulerTask.from_api(item) for item in data.get("tasks") or []]
        return tasks, Pagination.from_api(data.get("pagination"))

    def create_scheduler_task(self, task: SchedulerTask) -> SchedulerTask:
        _validate_task(task)
        data = self.request_data(
            "POST",
            "/admin/scheduler/tasks",
            "Failed to create scheduler task.",
            json=task.to_payload(),
        ) or {}
        return SchedulerTask.from_api(data.get("task") or data)

    def update_scheduler_task(self, task_id: str, task: SchedulerTask) -> SchedulerTask:
        _validate_task(task)
        data = self.request_data(
            "PUT",
            f"/admin/scheduler/tasks/{task_id}",
            "Failed to update scheduler task.",
            json=task.to_payload(),
        ) or {}
        return SchedulerTask.from_api(data.get("task") or data)


def _validate_task(task: SchedulerTask) -> None:
    if not task.task_name or not task.task_type or not task.platform:
        raise ValueError("Scheduler task needs a name, a type and a platform")
    if task.sub_sub_category_id and not task.sub_category_id:
        raise ValueError("A sub-sub category requires a sub category")
    if task.sub_category_id and not task.main_category_id:
        raise ValueError("A sub category requires a main category")
