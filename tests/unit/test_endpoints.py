"""
Unit tests for the endpoint schema
"""
import pytest

from node_agent_core.endpoints import EndpointSchema, EndpointSchemaError


@pytest.mark.unit
class TestEndpointSchema:
    """Test endpoint schema functionality"""

    @pytest.fixture
    def schema(self):
        """Create endpoint schema instance"""
        return EndpointSchema('https://host.example.com', 'node-7')

    def test_init(self, schema):
        """Test schema initialization"""
        assert schema.device_id == 'node-7'
        assert schema.base == 'https://host.example.com'

    def test_handshake_endpoint(self, schema):
        assert schema.handshake() == 'https://host.example.com/'

    def test_sense_endpoint(self, schema):
        assert schema.sense() == 'https://host.example.com/node-7/sense'

    def test_control_endpoint(self, schema):
        assert schema.control() == 'https://host.example.com/node-7/control'

    def test_trailing_slash_normalised(self):
        schema = EndpointSchema('https://host.example.com/api/', 'node-7')
        assert schema.handshake() == 'https://host.example.com/api/'
        assert schema.sense() == 'https://host.example.com/api/node-7/sense'

    @pytest.mark.parametrize('base_url', ['', 'host.example.com', 'ftp://host.example.com', 'https://'])
    def test_invalid_base_url(self, base_url):
        with pytest.raises(EndpointSchemaError):
            EndpointSchema(base_url, 'node-7')

    @pytest.mark.parametrize('base_url', ['https://host.example.com/api?x=1', 'https://host.example.com/#frag'])
    def test_base_url_with_query_or_fragment_rejected(self, base_url):
        with pytest.raises(EndpointSchemaError, match='query or fragment'):
            EndpointSchema(base_url, 'node-7')

    @pytest.mark.parametrize('device_id', ['', 'a/b', 'node 7', '../x?'])
    def test_invalid_device_id(self, device_id):
        with pytest.raises(EndpointSchemaError):
            EndpointSchema('https://host.example.com', device_id)

    def test_schema_is_immutable(self, schema):
        with pytest.raises(Exception):
            schema.device_id = 'other'
