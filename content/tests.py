import io

from django.contrib.auth import get_user_model
from django.test import TestCase
from docx import Document
from rest_framework.test import APIClient

from .models import ContentDocument

User = get_user_model()


def hymn(**extra):
    data = {
        'title': 'Tenen',
        'copticContent': 'Ⲧⲉⲛⲉⲛ',
        'copticArabicContent': 'تينين',
        'term': 1,
        'yearNumber': 2,
        'ageLevel': [9, 6, 6],
    }
    data.update(extra)
    return data


class ContentAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.editor = User.objects.create_user('editor', password='pass')
        self.editor.profile.role = 'editor'
        self.editor.profile.save()
        self.client.force_authenticate(self.editor)

    def test_create_hymn_sorts_age_levels(self):
        res = self.client.post('/api/content/hymns/', hymn(), format='json')
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.json()['ageLevel'], [6, 9])
        self.assertEqual(res.json()['collection'], 'hymns')

    def test_hymn_required_fields(self):
        res = self.client.post('/api/content/hymns/', hymn(copticContent='', ageLevel=[]), format='json')
        self.assertEqual(res.status_code, 400)
        self.assertIn('copticContent', res.json())
        self.assertIn('ageLevel', res.json())

    def test_other_collections_are_free_form(self):
        res = self.client.post('/api/content/taks/', {'title': 'Baptism', 'content': 'Order of service'},
                               format='json')
        self.assertEqual(res.status_code, 201)

    def test_partial_hymn_update_uses_stored_values(self):
        doc_id = self.client.post('/api/content/hymns/', hymn(), format='json').json()['id']
        res = self.client.patch(f'/api/content/hymns/{doc_id}/', {'title': 'Tenen (long)'}, format='json')
        self.assertEqual(res.status_code, 200)
        res = self.client.patch(f'/api/content/hymns/{doc_id}/', {'ageLevel': []}, format='json')
        self.assertEqual(res.status_code, 400)

    def test_collections_are_separate(self):
        ContentDocument.objects.create(collection='agbya', title='Prime')
        ContentDocument.objects.create(collection='coptic', title='Alphabet')
        res = self.client.get('/api/content/agbya/')
        self.assertEqual([d['title'] for d in res.json()], ['Prime'])
        self.assertEqual(self.client.get('/api/content/psalms/').status_code, 404)

    def test_search_and_filters(self):
        ContentDocument.objects.create(collection='taks', title='Baptism', term=1, year_number=1, age_levels=[5, 6])
        ContentDocument.objects.create(collection='taks', title='Wedding', term=2, year_number=1, age_levels=[12])
        ContentDocument.objects.create(collection='taks', title='Funeral', content='baptism is not here',
                                       term=2, year_number=3, age_levels=[6])

        titles = lambda res: sorted(d['title'] for d in res.json())
        self.assertEqual(titles(self.client.get('/api/content/taks/', {'search': 'BAPTISM'})), ['Baptism', 'Funeral'])
        self.assertEqual(titles(self.client.get('/api/content/taks/', {'term': 2})), ['Funeral', 'Wedding'])
        self.assertEqual(titles(self.client.get('/api/content/taks/', {'yearNumber': 1})), ['Baptism', 'Wedding'])
        self.assertEqual(titles(self.client.get('/api/content/taks/', {'ageLevel': 6})), ['Baptism', 'Funeral'])

    def test_export_word(self):
        ContentDocument.objects.create(collection='taks', title='Baptism', content='Order of service')
        ContentDocument.objects.create(collection='taks', title='Wedding', content='')

        res = self.client.get('/api/content/taks/export_word/')
        self.assertEqual(res.status_code, 200)
        self.assertIn('Taks_Documents.docx', res['Content-Disposition'])
        paragraphs = [p.text for p in Document(io.BytesIO(res.content)).paragraphs]
        self.assertEqual(paragraphs[0], 'All Filtered Taks Documents')
        self.assertEqual(paragraphs[1], 'Filter: None')
        self.assertIn('Baptism', paragraphs)
        self.assertIn('Order of service', paragraphs)
        self.assertIn('No content', paragraphs)

    def test_export_word_with_search_and_age_level(self):
        ContentDocument.objects.create(collection='taks', title='Baptism', age_levels=[5])
        res = self.client.get('/api/content/taks/export_word/', {'search': 'baptism-long-term', 'ageLevel': 5})
        self.assertEqual(res.status_code, 404)

        res = self.client.get('/api/content/taks/export_word/', {'search': 'Baptism', 'ageLevel': 5})
        self.assertIn('Taks_Documents_AgeLevel_5_Search_Baptism.docx', res['Content-Disposition'])
        paragraphs = [p.text for p in Document(io.BytesIO(res.content)).paragraphs]
        self.assertEqual(paragraphs[0], 'Taks Documents for Age Level: 5')

    def test_viewer_cannot_edit(self):
        viewer = User.objects.create_user('viewer', password='pass')
        self.client.force_authenticate(viewer)
        self.assertEqual(self.client.get('/api/content/hymns/').status_code, 200)
        self.assertEqual(self.client.post('/api/content/hymns/', hymn(), format='json').status_code, 403)
