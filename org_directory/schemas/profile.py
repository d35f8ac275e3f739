from typing import Any, Dict, Iterator, List, Optional
from pydantic import BaseModel, Field

# $select 字段列表，所有用户查询共用
PROFILE_FIELDS = (
    "id,displayName,jobTitle,mail,department,officeLocation,"
    "city,businessPhones,imAddresses,companyName"
)


class Profile(BaseModel):
    id: str
    display_name: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    email: Optional[str] = None
    office_location: Optional[str] = None
    city: Optional[str] = None
    business_phone: Optional[str] = None
    im_address: Optional[str] = None
    company_name: Optional[str] = None

    model_config = {"frozen": True}

    def lookup_keys(self) -> Iterator[str]:
        """Keys under which this entity can be looked up: id, then email."""
        yield self.id
        if self.email:
            yield self.email


class GraphUser(BaseModel):
    # Raw user payload as returned by /users endpoints
    id: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    job_title: Optional[str] = Field(default=None, alias="jobTitle")
    department: Optional[str] = None
    mail: Optional[str] = None
    office_location: Optional[str] = Field(default=None, alias="officeLocation")
    city: Optional[str] = None
    business_phones: Optional[List[str]] = Field(default=None, alias="businessPhones")
    im_addresses: Optional[List[str]] = Field(default=None, alias="imAddresses")
    company_name: Optional[str] = Field(default=None, alias="companyName")
    account_enabled: Optional[bool] = Field(default=None, alias="accountEnabled")

    # Allow extra fields (@odata.type etc.) for forward compatibility
    model_config = {"extra": "ignore", "populate_by_name": True}

    def to_profile(self) -> Profile:
        return Profile(
            id=self.id,
            display_name=self.display_name,
            job_title=self.job_title,
            department=self.department,
            email=self.mail,
            office_location=self.office_location,
            city=self.city,
            business_phone=self.business_phones[0] if self.business_phones else None,
            im_address=self.im_addresses[0] if self.im_addresses else None,
            company_name=self.company_name,
        )


class DirectReportsPage(BaseModel):
    value: List[GraphUser] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class BatchRequestItem(BaseModel):
    id: str
    method: str
    url: str


class BatchRequest(BaseModel):
    requests: List[BatchRequestItem]


class BatchItemResponse(BaseModel):
    id: str
    status: int
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Any = None

    model_config = {"extra": "ignore", "coerce_numbers_to_str": True}

    @property
    def is_success(self) -> bool:
        return self.status < 400


class BatchResponse(BaseModel):
    responses: List[BatchItemResponse] = Field(default_factory=list)

    model_config = {"extra": "ignore"}
