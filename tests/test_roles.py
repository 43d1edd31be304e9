import pytest

from airline_ams.exceptions import AuthenticationError, ForbiddenError
from airline_ams.roles import ROLE_CAPABILITIES, Capability, Role, can, parse_role, require


@pytest.mark.unit
class TestRoles:
    @pytest.mark.parametrize(
        'raw, expected',
        [
            ('Customer', Role.CUSTOMER),
            ('technician', Role.TECHNICIAN),
            (' PILOT ', Role.PILOT),
            ('Management', Role.MANAGEMENT),
        ],
    )
    def test_parse_role(self, raw, expected):
        assert parse_role(raw) == expected

    @pytest.mark.parametrize('raw', [None, '', 'Admin'])
    def test_parse_role_rejects_unknown(self, raw):
        with pytest.raises(AuthenticationError):
            parse_role(raw)

    def test_every_role_has_an_entry(self):
        assert set(ROLE_CAPABILITIES) == set(Role)

    def test_each_write_belongs_to_exactly_one_role(self):
        for capability in Capability:
            owners = [role for role in Role if can(role, capability)]
            assert len(owners) == 1, capability

    def test_capability_owners(self):
        assert can(Role.CUSTOMER, Capability.RESERVE_SEAT)
        assert can(Role.TECHNICIAN, Capability.RECORD_REPAIR)
        assert can(Role.PILOT, Capability.REQUEST_MAINTENANCE)
        assert not can(Role.MANAGEMENT, Capability.RESERVE_SEAT)

    @pytest.mark.asyncio
    async def test_require_returns_role_when_allowed(self):
        checker = require(Capability.RESERVE_SEAT)

        assert await checker(Role.CUSTOMER) == Role.CUSTOMER

    @pytest.mark.asyncio
    async def test_require_raises_forbidden(self):
        checker = require(Capability.RECORD_REPAIR)

        with pytest.raises(ForbiddenError) as exc_info:
            await checker(Role.PILOT)

        assert exc_info.value.status_code == 403
