from nanobed.ngsalign import minimap2


def test_align_preserves_modification_tags(sample_data):
    aligned = minimap2.run(sample_data)
    assert aligned.endswith('/20240101_A_meta.minimap.bam')
    align_cmd, index_cmd = sample_data['tool'].calls
    assert 'samtools fastq -@ 8 -T MM,ML ' in align_cmd
    assert '20240101_A_meta.merged.bam | ' in align_cmd
    assert ('minimap2 -ax map-ont -t 8 -y --secondary=no' in align_cmd)
    assert ' %s - | ' % sample_data['run'].ref_file in align_cmd
    assert '-T %s/reads.tmp -' % sample_data['work_dir'] in align_cmd
    assert index_cmd.startswith('samtools index -@ 8 ')


def test_align_configured_programs(sample_data):
    sample_data['config']['resources']['minimap2'] = {'cmd': '/opt/minimap2', 'preset': 'lr:hq',
                                                      'options': ['-k', 17]}
    minimap2.run(sample_data)
    assert '/opt/minimap2 -ax lr:hq -t 8 -y --secondary=no -k 17 ' in sample_data['tool'].calls[0]
